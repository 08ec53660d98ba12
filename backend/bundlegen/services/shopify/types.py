"""
Typed definitions for Shopify GraphQL responses.

Every catalog operation parses its `data` through one of these models; a response that does not
fit raises UpstreamShapeError instead of surfacing as a KeyError/None further down the pipeline.
Field names follow the GraphQL schema through aliases (selectedOptions, inventoryItem, userErrors...).
"""
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bundlegen.core.errors import UpstreamShapeError


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PageInfo(_Node):
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class UserError(_Node):
    field: list[str] | None = None
    message: str = ""
    code: str | None = None


class SelectedOption(_Node):
    name: str
    value: str


class InventoryItemNode(_Node):
    id: str
    tracked: bool | None = None


class Metafield(_Node):
    namespace: str = ""
    key: str = ""
    value: str | None = None


class MetafieldConnection(_Node):
    nodes: list[Metafield] = Field(default_factory=list)


class VariantNode(_Node):
    """One product variant (bundle ticket type or seat unit time slot)."""
    id: str
    title: str = ""
    sku: str | None = None
    price: Decimal | None = None
    selected_options: list[SelectedOption] = Field(default_factory=list, alias="selectedOptions")
    inventory_item: InventoryItemNode | None = Field(default=None, alias="inventoryItem")
    metafields: MetafieldConnection | None = None

    def label(self) -> str:
        """Option value of the single "Title" option, falling back to the variant title."""
        for opt in self.selected_options:
            if opt.name == "Title":
                return opt.value
        if self.selected_options:
            return self.selected_options[0].value
        return self.title

    def metafield(self, namespace: str, key: str) -> str | None:
        for mf in self.metafields.nodes if self.metafields else []:
            if mf.namespace == namespace and mf.key == key:
                return mf.value
        return None


class VariantEdge(_Node):
    node: VariantNode


class VariantConnection(_Node):
    edges: list[VariantEdge] = Field(default_factory=list)
    nodes: list[VariantNode] = Field(default_factory=list)

    def items(self) -> list[VariantNode]:
        return [e.node for e in self.edges] or list(self.nodes)


class ProductNode(_Node):
    id: str
    title: str = ""
    handle: str | None = None
    status: str | None = None
    tags: list[str] = Field(default_factory=list)
    variants: VariantConnection | None = None

    def variant_list(self) -> list[VariantNode]:
        return self.variants.items() if self.variants else []


class ProductEdge(_Node):
    cursor: str | None = None
    node: ProductNode


class ProductConnection(_Node):
    edges: list[ProductEdge] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")

    def items(self) -> list[ProductNode]:
        return [e.node for e in self.edges]

    def next_cursor(self) -> str | None:
        if not self.page_info.has_next_page:
            return None
        if self.page_info.end_cursor:
            return self.page_info.end_cursor
        return self.edges[-1].cursor if self.edges else None


class ProductsData(_Node):
    products: ProductConnection


class ProductData(_Node):
    product: ProductNode | None = None


class CollectionData(_Node):
    """Storefront collection(handle:) { products }."""

    class _Collection(_Node):
        id: str | None = None
        products: ProductConnection = Field(default_factory=ProductConnection)

    collection: _Collection | None = None


class MutationPayload(_Node):
    user_errors: list[UserError] = Field(default_factory=list, alias="userErrors")

    def error_messages(self) -> list[str]:
        return [e.message or str(e.field) for e in self.user_errors]


class ProductCreatePayload(MutationPayload):
    product: ProductNode | None = None


class VariantsBulkCreatePayload(MutationPayload):
    product_variants: list[VariantNode] = Field(default_factory=list, alias="productVariants")


class VariantsBulkUpdatePayload(MutationPayload):
    product_variants: list[VariantNode] = Field(default_factory=list, alias="productVariants")


class ComponentVariant(_Node):
    id: str
    title: str | None = None


class ComponentNode(_Node):
    id: str
    quantity: int = 1
    product_variant: ComponentVariant = Field(alias="productVariant")


class ComponentConnection(_Node):
    nodes: list[ComponentNode] = Field(default_factory=list)


class VariantComponentsNode(_Node):
    id: str
    title: str = ""
    product_variant_components: ComponentConnection = Field(
        default_factory=ComponentConnection, alias="productVariantComponents"
    )


class VariantComponentsData(_Node):
    product_variant: VariantComponentsNode | None = Field(default=None, alias="productVariant")


class RelationshipBulkUpdatePayload(MutationPayload):
    parent_product_variants: list[VariantComponentsNode] = Field(
        default_factory=list, alias="parentProductVariants"
    )


class InventorySetPayload(MutationPayload):
    pass


class InventoryActivatePayload(MutationPayload):
    pass


class PublishPayload(MutationPayload):
    pass


class CollectionAddPayload(MutationPayload):
    pass


class LocationNode(_Node):
    id: str
    name: str = ""


class LocationEdge(_Node):
    node: LocationNode


class LocationsData(_Node):
    class _Locations(_Node):
        edges: list[LocationEdge] = Field(default_factory=list)

    locations: _Locations


class Quantity(_Node):
    name: str
    quantity: int = 0


class InventoryLevelNode(_Node):
    location: LocationNode
    quantities: list[Quantity] = Field(default_factory=list)

    def available(self) -> int:
        for q in self.quantities:
            if q.name == "available":
                return q.quantity
        return 0


class InventoryLevelEdge(_Node):
    node: InventoryLevelNode


class InventoryItemLevels(_Node):
    id: str | None = None
    tracked: bool | None = None
    inventory_level: InventoryLevelNode | None = Field(default=None, alias="inventoryLevel")
    inventory_levels: list[InventoryLevelEdge] | None = Field(default=None, alias="inventoryLevels")


class VariantInventoryNode(_Node):
    id: str
    inventory_item: InventoryItemLevels | None = Field(default=None, alias="inventoryItem")


class VariantInventoryData(_Node):
    product_variant: VariantInventoryNode | None = Field(default=None, alias="productVariant")


class ShopMetafield(_Node):
    type: str | None = None
    value: str | None = None


class ShopMetafieldData(_Node):
    class _Shop(_Node):
        metafield: ShopMetafield | None = None

    shop: _Shop


class CollectionNode(_Node):
    id: str
    title: str = ""
    handle: str = ""


class CollectionsData(_Node):
    class _Edge(_Node):
        node: CollectionNode

    class _Collections(_Node):
        edges: list["CollectionsData._Edge"] = Field(default_factory=list)

    collections: _Collections


M = TypeVar("M", bound=BaseModel)


def parse(model: type[M], data: Any, operation: str) -> M:
    """Validate `data` against `model`; shape mismatch -> UpstreamShapeError naming the operation."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise UpstreamShapeError(f"{operation}: unexpected response shape ({e.error_count()} errors): {e}") from e
