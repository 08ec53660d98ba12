"""Protocol for the commerce catalog. The generator only talks to this interface; ShopifyCatalog implements it."""
from decimal import Decimal
from typing import Any, Protocol

from bundlegen.services.shopify.types import (
    CollectionNode,
    InventoryItemLevels,
    ProductNode,
    VariantComponentsNode,
    VariantNode,
)


class Catalog(Protocol):
    """Reads and writes the reconciler needs. Mutations raise ValidationError on userErrors."""

    # --- reads ---

    async def find_product(self, title: str, tag: str | None = None) -> ProductNode | None:
        """Product whose title equals `title` exactly (and carries `tag`, when given)."""
        ...

    async def list_variants(self, product_id: str) -> list[VariantNode]:
        ...

    async def get_inventory(self, variant_id: str, location_id: str | None = None) -> InventoryItemLevels | None:
        """Inventory item of a variant: one level when location_id is set, all levels otherwise."""
        ...

    async def get_variant_components(self, variant_id: str) -> VariantComponentsNode | None:
        ...

    async def get_default_location_id(self) -> str:
        ...

    async def get_holiday_dates(self) -> set[str]:
        ...

    async def search_products(self, query: str) -> list[ProductNode]:
        """All products matching a search query (paginated)."""
        ...

    async def find_collection(self, handle_or_title: str) -> CollectionNode | None:
        ...

    async def list_theme_product_templates(self) -> dict[str, Any]:
        ...

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
        ...

    async def create_variants(
        self, product_id: str, variants: list[dict[str, Any]], *, strategy: str = "DEFAULT"
    ) -> list[VariantNode]:
        ...

    async def activate_inventory(self, inventory_item_id: str, location_id: str, quantity: int) -> None:
        ...

    async def set_inventory_absolute(self, inventory_item_id: str, location_id: str, quantity: int) -> None:
        ...

    async def upsert_variant_component(self, parent_variant_id: str, child_variant_id: str, quantity: int) -> None:
        ...

    async def update_relationships(self, inputs: list[dict[str, Any]]) -> list[VariantComponentsNode]:
        """Raw productVariantRelationshipBulkUpdate (create / update / remove per parent)."""
        ...

    async def set_variant_prices(self, product_id: str, prices: dict[str, Decimal]) -> None:
        ...

    async def set_variant_metafields(self, product_id: str, metafields: dict[str, list[dict[str, str]]]) -> None:
        """Variant id -> metafield inputs ({namespace, key, type, value}), written in one bulk update."""
        ...

    async def publish_product(self, product_id: str, publication_id: str) -> None:
        ...

    async def add_products_to_collection(self, collection_id: str, product_ids: list[str]) -> None:
        ...
