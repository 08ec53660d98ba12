"""Shopify API client: lowest level, sends the request and unwraps the envelope. No domain logic."""
import json
import logging
from typing import Any

import httpx

from bundlegen.core.errors import BackendError, BackendNotConfigured
from bundlegen.services.shopify.config import ShopifyConfig

logger = logging.getLogger(__name__)


class ShopifyClient:
    """Admin GraphQL, Storefront GraphQL and Admin REST (themes) calls.

    Pass `http` to share one AsyncClient (tests pass one built on httpx.MockTransport);
    otherwise each call opens its own short-lived client.
    """

    def __init__(self, config: ShopifyConfig | None = None, http: httpx.AsyncClient | None = None) -> None:
        self._config = config or ShopifyConfig()
        self._http = http

    @property
    def config(self) -> ShopifyConfig:
        return self._config

    async def _send(self, method: str, url: str, *, headers: dict[str, str], **kwargs: Any) -> httpx.Response:
        try:
            if self._http is not None:
                return await self._http.request(method, url, headers=headers, **kwargs)
            async with httpx.AsyncClient(timeout=self._config.timeout) as c:
                return await c.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"Shopify request failed: {e!s}") from e

    @staticmethod
    def _unwrap_graphql(r: httpx.Response, label: str) -> dict[str, Any]:
        text = r.text or ""
        if not r.is_success:
            raise BackendError(f"{label} HTTP {r.status_code}: {text[:500]}", ctx={"status": r.status_code})
        try:
            body = json.loads(text)
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {label}: {text[:200]}...") from e
        if not isinstance(body, dict):
            raise BackendError(f"Invalid JSON from {label}: {text[:200]}...")
        errors = body.get("errors") or []
        if errors:
            if isinstance(errors, list):
                msg = " | ".join(str((e or {}).get("message") or e) for e in errors)
            else:
                msg = str(errors)
            raise BackendError(f"{label} errors: {msg}")
        data = body.get("data")
        if not data:
            raise BackendError(f"{label}: empty data")
        return data

    async def admin_graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self._config.is_configured():
            raise BackendNotConfigured(
                "Shopify Admin API not configured. Add SHOPIFY_STORE_DOMAIN and ADMIN_ACCESS_TOKEN to .env."
            )
        r = await self._send(
            "POST",
            self._config.admin_graphql_url,
            headers=self._config.admin_headers(),
            json={"query": query, "variables": variables or {}},
        )
        return self._unwrap_graphql(r, "Shopify GQL")

    async def storefront_graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self._config.storefront_configured():
            raise BackendNotConfigured(
                "Shopify Storefront API not configured. Add SHOPIFY_STOREFRONT_ACCESS_TOKEN to .env."
            )
        r = await self._send(
            "POST",
            self._config.storefront_graphql_url,
            headers=self._config.storefront_headers(),
            json={"query": query, "variables": variables or {}},
        )
        return self._unwrap_graphql(r, "Storefront GQL")

    async def admin_rest_get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET on the Admin REST API (used for theme assets, which GraphQL does not expose)."""
        if not self._config.is_configured():
            raise BackendNotConfigured(
                "Shopify Admin API not configured. Add SHOPIFY_STORE_DOMAIN and ADMIN_ACCESS_TOKEN to .env."
            )
        r = await self._send(
            "GET",
            f"{self._config.admin_base}{path}",
            headers=self._config.admin_headers(),
            params=params or {},
        )
        if not r.is_success:
            raise BackendError(f"Shopify REST {r.status_code}: {(r.text or '')[:500]}", ctx={"status": r.status_code})
        if not r.content:
            return {}
        try:
            out = r.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from Shopify REST: {(r.text or '')[:200]}...") from e
        return out if isinstance(out, dict) else {}
