import itertools
import re
from decimal import Decimal

from bundlegen.core.errors import ValidationError
from bundlegen.services.shopify.types import (
    CollectionNode,
    ComponentConnection,
    ComponentNode,
    ComponentVariant,
    InventoryItemLevels,
    InventoryItemNode,
    InventoryLevelEdge,
    InventoryLevelNode,
    LocationNode,
    Metafield,
    MetafieldConnection,
    ProductNode,
    Quantity,
    SelectedOption,
    VariantComponentsNode,
    VariantConnection,
    VariantNode,
)

LOCATION = "gid://shopify/Location/1"

WRITE_OPS = {
    "create_product",
    "create_variants",
    "activate_inventory",
    "set_inventory_absolute",
    "upsert_variant_component",
    "update_relationships",
    "set_variant_prices",
    "set_variant_metafields",
    "publish_product",
    "add_products_to_collection",
}


class FakeCatalog:
    """In-memory catalog. Behaves like the shop for the reconcilers and records every call."""

    def __init__(self, *, holidays=(), collections=None):
        self.calls = []
        self.holidays = set(holidays)
        self.collections = dict(collections or {})
        self.products = {}
        self.variants = {}
        self.levels = {}
        self.components = {}
        self._ids = itertools.count(1)

    # --- helpers for tests ---

    def _id(self, kind):
        return f"gid://shopify/{kind}/{next(self._ids)}"

    def _record(self, name, *args):
        self.calls.append((name, args))

    def writes(self):
        return [c for c in self.calls if c[0] in WRITE_OPS]

    def reads(self):
        return [c for c in self.calls if c[0] not in WRITE_OPS]

    def names(self):
        return [c[0] for c in self.calls]

    def product_by_title(self, title):
        return next((p for p in self.products.values() if p["title"] == title), None)

    def variant_node(self, vid):
        v = self.variants[vid]
        return VariantNode(
            id=vid,
            title=v["title"],
            sku=v["sku"],
            price=v["price"],
            selected_options=[SelectedOption(name="Title", value=v["title"])],
            inventory_item=InventoryItemNode(id=v["item"], tracked=v["tracked"]),
            metafields=MetafieldConnection(
                nodes=[Metafield(namespace=m["namespace"], key=m["key"], value=m["value"]) for m in v["metafields"]]
            ),
        )

    def product_node(self, pid):
        p = self.products[pid]
        return ProductNode(
            id=pid,
            title=p["title"],
            tags=list(p["tags"]),
            variants=VariantConnection(nodes=[self.variant_node(v) for v in p["variants"]]),
        )

    def add_variant(self, product_id, title, *, tracked=False, sku=None, price=None):
        vid = self._id("ProductVariant")
        self.variants[vid] = {
            "title": title,
            "sku": sku,
            "price": price,
            "tracked": tracked,
            "item": self._id("InventoryItem"),
            "product": product_id,
            "metafields": [],
        }
        self.products[product_id]["variants"].append(vid)
        return vid

    def add_product(self, title, tags, variants=()):
        pid = self._id("Product")
        self.products[pid] = {"title": title, "tags": list(tags), "variants": [], "published": False}
        for title_ in variants:
            self.add_variant(pid, title_)
        return pid

    def components_of(self, parent_id):
        return dict(self.components.get(parent_id, {}))

    def _components_node(self, parent_id):
        links = self.components.get(parent_id, {})
        return VariantComponentsNode(
            id=parent_id,
            title=self.variants[parent_id]["title"] if parent_id in self.variants else "",
            product_variant_components=ComponentConnection(
                nodes=[
                    ComponentNode(
                        id=f"gid://shopify/ProductVariantComponent/{parent_id.rsplit('/', 1)[-1]}-{child.rsplit('/', 1)[-1]}",
                        quantity=qty,
                        product_variant=ComponentVariant(id=child),
                    )
                    for child, qty in links.items()
                ]
            ),
        )

    def _level(self, item, location):
        return InventoryLevelNode(
            location=LocationNode(id=location, name="Main"),
            quantities=[Quantity(name="available", quantity=self.levels[(item, location)])],
        )

    # --- reads ---

    async def find_product(self, title, tag=None):
        self._record("find_product", title, tag)
        for pid, p in self.products.items():
            if p["title"] == title and (tag is None or tag in p["tags"]):
                return self.product_node(pid)
        return None

    async def list_variants(self, product_id):
        self._record("list_variants", product_id)
        return self.product_node(product_id).variant_list()

    async def get_inventory(self, variant_id, location_id=None):
        self._record("get_inventory", variant_id, location_id)
        v = self.variants.get(variant_id)
        if v is None:
            return None
        item = v["item"]
        if location_id:
            level = self._level(item, location_id) if (item, location_id) in self.levels else None
            return InventoryItemLevels(id=item, tracked=v["tracked"], inventory_level=level)
        edges = [InventoryLevelEdge(node=self._level(i, loc)) for (i, loc) in self.levels if i == item]
        return InventoryItemLevels(id=item, tracked=v["tracked"], inventory_levels=edges)

    async def get_variant_components(self, variant_id):
        self._record("get_variant_components", variant_id)
        if variant_id not in self.variants:
            return None
        return self._components_node(variant_id)

    async def get_default_location_id(self):
        self._record("get_default_location_id")
        return LOCATION

    async def get_holiday_dates(self):
        self._record("get_holiday_dates")
        return set(self.holidays)

    async def search_products(self, query):
        self._record("search_products", query)
        tags = re.findall(r"tag:(\S+)", query)
        return [self.product_node(pid) for pid, p in self.products.items() if all(t in p["tags"] for t in tags)]

    async def find_collection(self, handle_or_title):
        self._record("find_collection", handle_or_title)
        cid = self.collections.get(handle_or_title)
        return CollectionNode(id=cid, handle=handle_or_title) if cid else None

    async def list_theme_product_templates(self):
        self._record("list_theme_product_templates")
        return {"themeId": 1, "templateKeys": ["templates/product.biglietto.json"], "templateSuffixes": ["biglietto"]}

    # --- writes ---

    async def create_product(self, title, *, tags, handle=None, description=None, template_suffix=None, status="ACTIVE"):
        self._record("create_product", title, tuple(tags))
        pid = self.add_product(title, tags, ["Default Title"])
        return ProductNode(id=pid, title=title, tags=list(tags))

    async def create_variants(self, product_id, variants, *, strategy="DEFAULT"):
        self._record("create_variants", product_id, tuple(v["optionValues"][0]["name"] for v in variants), strategy)
        p = self.products[product_id]
        if strategy == "REMOVE_STANDALONE_VARIANT":
            p["variants"] = [v for v in p["variants"] if self.variants[v]["title"] != "Default Title"]
        out = []
        for data in variants:
            item = data.get("inventoryItem") or {}
            vid = self.add_variant(
                product_id,
                data["optionValues"][0]["name"],
                tracked=bool(item.get("tracked")),
                sku=item.get("sku"),
            )
            self.variants[vid]["metafields"] = list(data.get("metafields") or [])
            out.append(self.variant_node(vid))
        return out

    async def activate_inventory(self, inventory_item_id, location_id, quantity):
        self._record("activate_inventory", inventory_item_id, location_id, quantity)
        self.levels[(inventory_item_id, location_id)] = quantity

    async def set_inventory_absolute(self, inventory_item_id, location_id, quantity):
        self._record("set_inventory_absolute", inventory_item_id, location_id, quantity)
        self.levels[(inventory_item_id, location_id)] = quantity

    async def upsert_variant_component(self, parent_variant_id, child_variant_id, quantity):
        self._record("upsert_variant_component", parent_variant_id, child_variant_id, quantity)
        self.components.setdefault(parent_variant_id, {})[child_variant_id] = quantity

    async def update_relationships(self, inputs):
        self._record("update_relationships", len(inputs))
        out = []
        for change in inputs:
            parent = change["parentProductVariantId"]
            if parent not in self.variants:
                raise ValidationError("productVariantRelationshipBulkUpdate", [f"{parent} not found"])
            links = self.components.setdefault(parent, {})
            for child in change.get("productVariantRelationshipsToRemove", []):
                links.pop(child, None)
            for key in ("productVariantRelationshipsToCreate", "productVariantRelationshipsToUpdate"):
                for link in change.get(key, []):
                    links[link["id"]] = link["quantity"]
            out.append(self._components_node(parent))
        return out

    async def set_variant_prices(self, product_id, prices):
        self._record("set_variant_prices", product_id, dict(prices))
        for vid, price in prices.items():
            self.variants[vid]["price"] = Decimal(price)

    async def set_variant_metafields(self, product_id, metafields):
        self._record("set_variant_metafields", product_id, {vid: list(mfs) for vid, mfs in metafields.items()})
        for vid, mfs in metafields.items():
            stored = self.variants[vid]["metafields"]
            for mf in mfs:
                stored[:] = [m for m in stored if (m["namespace"], m["key"]) != (mf["namespace"], mf["key"])]
                stored.append(dict(mf))

    async def publish_product(self, product_id, publication_id):
        self._record("publish_product", product_id, publication_id)
        self.products[product_id]["published"] = True

    async def add_products_to_collection(self, collection_id, product_ids):
        self._record("add_products_to_collection", collection_id, tuple(product_ids))
