"""Shopify API config. Credentials from settings (SHOPIFY_STORE_DOMAIN, ADMIN_ACCESS_TOKEN) or ShopifyConfig args."""
from bundlegen.config import settings


class ShopifyConfig:
    """Store domain, tokens and API version for the Admin and Storefront GraphQL endpoints."""

    __slots__ = ("shop_domain", "admin_token", "storefront_token", "api_version", "timeout")

    def __init__(
        self,
        *,
        shop_domain: str | None = None,
        admin_token: str | None = None,
        storefront_token: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.shop_domain = (shop_domain if shop_domain is not None else settings.shop_domain).strip()
        self.admin_token = (admin_token if admin_token is not None else settings.admin_access_token).strip()
        self.storefront_token = (
            storefront_token if storefront_token is not None else settings.shopify_storefront_access_token
        ).strip()
        self.api_version = api_version or settings.shopify_api_version
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds

    def is_configured(self) -> bool:
        return bool(self.shop_domain and self.admin_token)

    def storefront_configured(self) -> bool:
        return bool(self.shop_domain and self.storefront_token)

    @property
    def admin_base(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}"

    @property
    def admin_graphql_url(self) -> str:
        return f"{self.admin_base}/graphql.json"

    @property
    def storefront_graphql_url(self) -> str:
        return f"https://{self.shop_domain}/api/{self.api_version}/graphql.json"

    def admin_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.admin_token,
        }

    def storefront_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Storefront-Access-Token": self.storefront_token,
        }
