"""Public collection listing through the Storefront API."""
import logging

from bundlegen.services.shopify import queries
from bundlegen.services.shopify.client import ShopifyClient
from bundlegen.services.shopify.types import CollectionData, ProductNode, parse

logger = logging.getLogger(__name__)


async def collection_products(client: ShopifyClient, handle: str) -> list[ProductNode]:
    """Every product of the collection (all pages). Unknown handle -> []."""
    out: list[ProductNode] = []
    cursor: str | None = None
    while True:
        data = await client.storefront_graphql(
            queries.STOREFRONT_COLLECTION_PRODUCTS, {"handle": handle, "cursor": cursor}
        )
        collection = parse(CollectionData, data, "collection").collection
        if collection is None:
            logger.warning("Storefront collection %r not found", handle)
            return out
        out.extend(collection.products.items())
        cursor = collection.products.next_cursor()
        if not cursor:
            return out
