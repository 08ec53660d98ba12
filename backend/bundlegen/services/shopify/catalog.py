"""
Shopify Admin implementation of the Catalog protocol.

Each method sends one document from queries.py through ShopifyClient, validates the `data` with the
models in types.py and raises ValidationError when a mutation reports userErrors.
"""
import json
import logging
import time
from decimal import Decimal
from typing import Any

from bundlegen.config import settings
from bundlegen.core.constants import (
    INVENTORY_QUANTITY_NAME,
    INVENTORY_REASON,
    INVENTORY_REFERENCE_URI,
)
from bundlegen.core.errors import BackendError, UpstreamShapeError, ValidationError
from bundlegen.services.shopify import queries
from bundlegen.services.shopify.client import ShopifyClient
from bundlegen.services.shopify.types import (
    CollectionAddPayload,
    CollectionNode,
    CollectionsData,
    InventoryActivatePayload,
    InventoryItemLevels,
    InventorySetPayload,
    LocationsData,
    MutationPayload,
    ProductCreatePayload,
    ProductData,
    ProductNode,
    ProductsData,
    PublishPayload,
    RelationshipBulkUpdatePayload,
    ShopMetafieldData,
    VariantComponentsData,
    VariantComponentsNode,
    VariantInventoryData,
    VariantNode,
    VariantsBulkCreatePayload,
    VariantsBulkUpdatePayload,
    parse,
)

logger = logging.getLogger(__name__)

# Search results scanned for an exact title match (search is tokenized, not exact-phrase)
FIND_CANDIDATES = 10


def to_gid(kind: str, value: str) -> str:
    """Numeric id -> gid://shopify/<kind>/<id>; gids and other strings pass through."""
    v = (value or "").strip()
    if v.startswith("gid://"):
        return v
    if v.isdigit():
        return f"gid://shopify/{kind}/{v}"
    return v


def search_phrase(value: str) -> str:
    """Quote a value for the products/collections search syntax."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_holidays(raw: str | None) -> list[str]:
    """Metafield value as JSON array, else comma-separated list, else a single date."""
    if not raw or not raw.strip():
        return []
    try:
        arr = json.loads(raw)
    except ValueError:
        arr = None
    if isinstance(arr, list):
        return [str(s).strip() for s in arr if str(s).strip()]
    if "," in raw:
        return [s.strip() for s in raw.split(",") if s.strip()]
    return [raw.strip()]


def _check(payload: MutationPayload, operation: str, **ctx: Any) -> None:
    messages = payload.error_messages()
    if messages:
        raise ValidationError(operation, messages, ctx=ctx or None)


class ShopifyCatalog:
    """Catalog backed by the Shopify Admin GraphQL API (and REST for themes)."""

    def __init__(self, client: ShopifyClient | None = None) -> None:
        self._client = client or ShopifyClient()
        self._default_location: str | None = None

    @property
    def client(self) -> ShopifyClient:
        return self._client

    # --- reads ---

    async def find_product(self, title: str, tag: str | None = None) -> ProductNode | None:
        q = f"title:{search_phrase(title)}"
        if tag:
            q += f" AND tag:{tag}"
        data = await self._client.admin_graphql(queries.FIND_PRODUCTS, {"query": q, "first": FIND_CANDIDATES})
        products = parse(ProductsData, data, "products").products.items()
        for p in products:
            if p.title != title:
                continue
            if tag and tag not in p.tags:
                continue
            logger.debug("Found product %s for title %r", p.id, title)
            return p
        logger.debug("No product for title %r (tag=%s, %d candidates)", title, tag, len(products))
        return None

    async def list_variants(self, product_id: str) -> list[VariantNode]:
        data = await self._client.admin_graphql(queries.PRODUCT_VARIANTS, {"id": product_id})
        product = parse(ProductData, data, "product").product
        if product is None:
            raise UpstreamShapeError(f"product {product_id} not found", ctx={"productId": product_id})
        return product.variant_list()

    async def get_inventory(self, variant_id: str, location_id: str | None = None) -> InventoryItemLevels | None:
        if location_id:
            data = await self._client.admin_graphql(
                queries.INVENTORY_LEVEL, {"variantId": variant_id, "locationId": to_gid("Location", location_id)}
            )
        else:
            data = await self._client.admin_graphql(queries.INVENTORY_LEVELS_ALL, {"variantId": variant_id})
        variant = parse(VariantInventoryData, data, "productVariant").product_variant
        if variant is None:
            return None
        return variant.inventory_item

    async def get_variant_components(self, variant_id: str) -> VariantComponentsNode | None:
        data = await self._client.admin_graphql(queries.VARIANT_COMPONENTS, {"id": variant_id})
        return parse(VariantComponentsData, data, "productVariant").product_variant

    async def get_default_location_id(self) -> str:
        if settings.default_location_id:
            return to_gid("Location", settings.default_location_id)
        if self._default_location:
            return self._default_location
        data = await self._client.admin_graphql(queries.FIRST_LOCATION)
        edges = parse(LocationsData, data, "locations").locations.edges
        if not edges:
            raise BackendError("No location registered on the shop")
        self._default_location = edges[0].node.id
        logger.info("Default location resolved to %s (%s)", edges[0].node.id, edges[0].node.name)
        return self._default_location

    async def get_holiday_dates(self) -> set[str]:
        data = await self._client.admin_graphql(
            queries.SHOP_METAFIELD,
            {"namespace": settings.holidays_metafield_namespace, "key": settings.holidays_metafield_key},
        )
        mf = parse(ShopMetafieldData, data, "shop").shop.metafield
        return set(parse_holidays(mf.value if mf else None))

    async def search_products(self, query: str) -> list[ProductNode]:
        out: list[ProductNode] = []
        after: str | None = None
        while True:
            data = await self._client.admin_graphql(queries.PRODUCTS_PAGE, {"query": query, "after": after})
            conn = parse(ProductsData, data, "products").products
            out.extend(conn.items())
            after = conn.next_cursor()
            if not after:
                break
        logger.debug("search_products %r -> %d products", query, len(out))
        return out

    async def find_collection(self, handle_or_title: str) -> CollectionNode | None:
        q = f"handle:{handle_or_title} OR title:{search_phrase(handle_or_title)}"
        data = await self._client.admin_graphql(queries.FIND_COLLECTION, {"query": q})
        edges = parse(CollectionsData, data, "collections").collections.edges
        return edges[0].node if edges else None

    async def list_theme_product_templates(self) -> dict[str, Any]:
        themes = (await self._client.admin_rest_get("/themes.json")).get("themes") or []
        if not themes:
            raise BackendError("No theme found on the shop")
        main = next((t for t in themes if t.get("role") == "main"), themes[0])
        theme_id = main.get("id")
        assets = (await self._client.admin_rest_get(f"/themes/{theme_id}/assets.json")).get("assets") or []
        keys = [
            a.get("key", "")
            for a in assets
            if a.get("key", "").startswith("templates/product") and a.get("key", "").endswith(".json")
        ]
        suffixes = []
        for k in keys:
            # templates/product.<suffix>.json; templates/product.json is the default template
            parts = k[len("templates/"):-len(".json")].split(".", 1)
            if len(parts) == 2 and parts[0] == "product":
                suffixes.append(parts[1])
        return {"themeId": theme_id, "templateKeys": keys, "templateSuffixes": sorted(suffixes)}

    # --- writes ---

    async def create_product(
        self,
        title: str,
        *,
        tags: list[str],
        handle: str | None = None,
        description: str | None = None,
        template_suffix: str | None = None,
        status: str = "ACTIVE",
    ) -> ProductNode:
        product_input: dict[str, Any] = {"title": title, "status": status, "tags": tags}
        if handle:
            product_input["handle"] = handle
        if description:
            product_input["descriptionHtml"] = description
        if template_suffix:
            product_input["templateSuffix"] = template_suffix
        data = await self._client.admin_graphql(queries.PRODUCT_CREATE, {"input": product_input})
        payload = parse(ProductCreatePayload, data.get("productCreate"), "productCreate")
        _check(payload, "productCreate", title=title)
        if payload.product is None:
            raise UpstreamShapeError("productCreate: product missing from response", ctx={"title": title})
        logger.info("Created product %s %r", payload.product.id, title)
        return payload.product

    async def create_variants(
        self, product_id: str, variants: list[dict[str, Any]], *, strategy: str = "DEFAULT"
    ) -> list[VariantNode]:
        data = await self._client.admin_graphql(
            queries.VARIANTS_BULK_CREATE, {"productId": product_id, "variants": variants, "strategy": strategy}
        )
        payload = parse(VariantsBulkCreatePayload, data.get("productVariantsBulkCreate"), "productVariantsBulkCreate")
        _check(payload, "productVariantsBulkCreate", productId=product_id)
        logger.info("Created %d variants on %s", len(payload.product_variants), product_id)
        return payload.product_variants

    async def activate_inventory(self, inventory_item_id: str, location_id: str, quantity: int) -> None:
        data = await self._client.admin_graphql(
            queries.INVENTORY_ACTIVATE,
            {"inventoryItemId": inventory_item_id, "locationId": location_id, "available": quantity},
        )
        payload = parse(InventoryActivatePayload, data.get("inventoryActivate"), "inventoryActivate")
        _check(payload, "inventoryActivate", inventoryItemId=inventory_item_id)

    async def set_inventory_absolute(self, inventory_item_id: str, location_id: str, quantity: int) -> None:
        gql_input = {
            "name": INVENTORY_QUANTITY_NAME,
            "reason": INVENTORY_REASON,
            "ignoreCompareQuantity": True,
            "referenceDocumentUri": INVENTORY_REFERENCE_URI.format(stamp=int(time.time() * 1000)),
            "quantities": [
                {"inventoryItemId": inventory_item_id, "locationId": location_id, "quantity": quantity},
            ],
        }
        data = await self._client.admin_graphql(queries.INVENTORY_SET_QUANTITIES, {"input": gql_input})
        payload = parse(InventorySetPayload, data.get("inventorySetQuantities"), "inventorySetQuantities")
        _check(payload, "inventorySetQuantities", inventoryItemId=inventory_item_id)

    async def update_relationships(self, inputs: list[dict[str, Any]]) -> list[VariantComponentsNode]:
        data = await self._client.admin_graphql(queries.RELATIONSHIP_BULK_UPDATE, {"input": inputs})
        payload = parse(
            RelationshipBulkUpdatePayload,
            data.get("productVariantRelationshipBulkUpdate"),
            "productVariantRelationshipBulkUpdate",
        )
        _check(payload, "productVariantRelationshipBulkUpdate", parents=len(inputs))
        return payload.parent_product_variants

    async def upsert_variant_component(self, parent_variant_id: str, child_variant_id: str, quantity: int) -> None:
        """Create the parent -> child link; if the backend rejects it (already linked), update the quantity."""
        link = [{"id": child_variant_id, "quantity": quantity}]
        try:
            await self.update_relationships(
                [{"parentProductVariantId": parent_variant_id, "productVariantRelationshipsToCreate": link}]
            )
            return
        except ValidationError as create_err:
            logger.debug("Component create rejected for %s (%s); updating", parent_variant_id, create_err)
            try:
                await self.update_relationships(
                    [{"parentProductVariantId": parent_variant_id, "productVariantRelationshipsToUpdate": link}]
                )
            except ValidationError as update_err:
                raise ValidationError(
                    "productVariantRelationshipBulkUpdate",
                    create_err.messages + update_err.messages,
                    ctx={"parentVariantId": parent_variant_id, "childVariantId": child_variant_id},
                ) from update_err

    async def _bulk_update_variants(self, product_id: str, variants: list[dict[str, Any]]) -> None:
        if not variants:
            return
        data = await self._client.admin_graphql(
            queries.VARIANTS_BULK_UPDATE, {"productId": product_id, "variants": variants}
        )
        payload = parse(VariantsBulkUpdatePayload, data.get("productVariantsBulkUpdate"), "productVariantsBulkUpdate")
        _check(payload, "productVariantsBulkUpdate", productId=product_id, variantIds=[v["id"] for v in variants])

    async def set_variant_prices(self, product_id: str, prices: dict[str, Decimal]) -> None:
        await self._bulk_update_variants(
            product_id, [{"id": vid, "price": f"{price:.2f}"} for vid, price in prices.items()]
        )

    async def set_variant_metafields(self, product_id: str, metafields: dict[str, list[dict[str, str]]]) -> None:
        await self._bulk_update_variants(
            product_id, [{"id": vid, "metafields": mfs} for vid, mfs in metafields.items()]
        )

    async def publish_product(self, product_id: str, publication_id: str) -> None:
        data = await self._client.admin_graphql(
            queries.PUBLISHABLE_PUBLISH,
            {"id": product_id, "publicationId": to_gid("Publication", publication_id)},
        )
        payload = parse(PublishPayload, data.get("publishablePublish"), "publishablePublish")
        _check(payload, "publishablePublish", productId=product_id)
        logger.info("Published %s to %s", product_id, publication_id)

    async def add_products_to_collection(self, collection_id: str, product_ids: list[str]) -> None:
        data = await self._client.admin_graphql(
            queries.COLLECTION_ADD_PRODUCTS, {"id": collection_id, "productIds": product_ids}
        )
        payload = parse(CollectionAddPayload, data.get("collectionAddProductsV2"), "collectionAddProductsV2")
        _check(payload, "collectionAddProductsV2", collectionId=collection_id)
        logger.info("Queued %d products for collection %s", len(product_ids), collection_id)
