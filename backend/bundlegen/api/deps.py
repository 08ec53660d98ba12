"""Request dependencies: one Shopify client per request. Tests override these with fakes."""
from collections.abc import AsyncIterator

import httpx
from fastapi import Depends

from bundlegen.config import settings
from bundlegen.services.shopify.catalog import ShopifyCatalog
from bundlegen.services.shopify.client import ShopifyClient


async def get_shopify_client() -> AsyncIterator[ShopifyClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        yield ShopifyClient(http=http)


def get_catalog(client: ShopifyClient = Depends(get_shopify_client)) -> ShopifyCatalog:
    return ShopifyCatalog(client)
