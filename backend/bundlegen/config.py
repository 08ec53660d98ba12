"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env next to backend/ (parent of bundlegen/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_path, extra="ignore", populate_by_name=True)

    # Shopify Admin API: SHOPIFY_STORE_DOMAIN (or SHOP_DOMAIN) and ADMIN_ACCESS_TOKEN in .env
    shop_domain: str = Field(default="", validation_alias=AliasChoices("SHOPIFY_STORE_DOMAIN", "SHOP_DOMAIN"))
    admin_access_token: str = ""
    shopify_api_version: str = "2024-07"
    # Public calendar reads the collection through the Storefront API when this is set
    shopify_storefront_access_token: str = ""
    # Bundles get published here on creation; empty = leave unpublished
    shopify_online_store_publication_id: str = ""
    # Numeric id or gid; empty = first location registered on the shop
    default_location_id: str = ""

    admin_secret: str = ""

    calendar_timezone: str = "Europe/Rome"
    ticket_metafield_namespace: str = "tickets"
    holidays_metafield_namespace: str = "custom"
    holidays_metafield_key: str = "public_holidays"

    # Comma-separated extra origins for the admin UI
    cors_origins: str = ""
    http_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    @field_validator(
        "shop_domain",
        "admin_access_token",
        "shopify_storefront_access_token",
        "admin_secret",
        "default_location_id",
        mode="after",
    )
    @classmethod
    def strip_secrets(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("shop_domain", mode="after")
    @classmethod
    def strip_scheme(cls, v: str) -> str:
        for prefix in ("https://", "http://"):
            if v.startswith(prefix):
                v = v[len(prefix):]
        return v.rstrip("/")

    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
