"""
Seat Unit reconciler: one product per (base, date), one tracked variant per slot time,
inventory at one location set to the absolute capacity.
"""
import logging

from bundlegen.core.constants import SEAT_OPTION_NAME, SEAT_UNIT_TAG
from bundlegen.core.errors import UpstreamShapeError
from bundlegen.services.generator.cache import LookupCache
from bundlegen.services.generator.locks import title_locks
from bundlegen.services.generator.titles import normalize_time, seat_sku, seat_unit_title, slugify
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.types import ProductNode, VariantConnection, VariantNode

logger = logging.getLogger(__name__)

STANDALONE_VARIANT_TITLE = "Default Title"


def dry_run_gid(kind: str, key: str) -> str:
    """Deterministic placeholder id for objects a dry run would create."""
    return f"gid://shopify/{kind}/DRYRUN-{slugify(key)}"


def merge_tags(*groups: list[str] | None) -> list[str]:
    out: list[str] = []
    for group in groups:
        for tag in group or []:
            tag = (tag or "").strip()
            if tag and tag not in out:
                out.append(tag)
    return out


def variant_create_strategy(variants: list[VariantNode]) -> str:
    """Replace the placeholder variant Shopify adds to a new product; otherwise append."""
    if len(variants) == 1 and variants[0].title == STANDALONE_VARIANT_TITLE:
        return "REMOVE_STANDALONE_VARIANT"
    return "DEFAULT"


def with_variants(product: ProductNode, variants: list[VariantNode]) -> ProductNode:
    return product.model_copy(update={"variants": VariantConnection(nodes=variants)})


class SeatUnitResult:
    """Outcome of ensure_seat_unit. `created` is True only when this call created the product."""

    __slots__ = ("product_id", "variant_id", "inventory_item_id", "created", "variant_created")

    def __init__(
        self,
        *,
        product_id: str,
        variant_id: str,
        inventory_item_id: str | None,
        created: bool,
        variant_created: bool,
    ):
        self.product_id = product_id
        self.variant_id = variant_id
        self.inventory_item_id = inventory_item_id
        self.created = created
        self.variant_created = variant_created


def _find_time_variant(variants: list[VariantNode], time_str: str) -> VariantNode | None:
    for v in variants:
        if v.title == time_str or v.label() == time_str:
            return v
    return None


async def ensure_seat_unit(
    catalog: Catalog,
    *,
    title_base: str,
    date_str: str,
    time_str: str,
    tags: list[str] | None = None,
    description: str | None = None,
    template_suffix: str | None = None,
    dry_run: bool = False,
    cache: LookupCache | None = None,
) -> SeatUnitResult:
    """Find-or-create the Seat Unit product for the date and its variant for the time."""
    title = seat_unit_title(title_base, date_str)
    time_str = normalize_time(time_str)
    cache = cache if cache is not None else LookupCache()

    async with title_locks.hold(title):
        if title in cache:
            product = cache.get(title)
        else:
            product = await catalog.find_product(title, SEAT_UNIT_TAG)
            cache.put(title, product)

        created = False
        if product is None:
            if dry_run:
                product = ProductNode(id=dry_run_gid("Product", title), title=title, tags=[SEAT_UNIT_TAG])
                cache.put(title, product)
            else:
                product = await catalog.create_product(
                    title,
                    tags=merge_tags(tags, [SEAT_UNIT_TAG]),
                    handle=slugify(title),
                    description=description,
                    template_suffix=template_suffix,
                )
                created = True
                product = with_variants(product, await catalog.list_variants(product.id))
                cache.put(title, product)

        variants = product.variant_list()
        variant = _find_time_variant(variants, time_str)
        if variant is not None:
            return SeatUnitResult(
                product_id=product.id,
                variant_id=variant.id,
                inventory_item_id=variant.inventory_item.id if variant.inventory_item else None,
                created=created,
                variant_created=False,
            )

        if dry_run:
            return SeatUnitResult(
                product_id=product.id,
                variant_id=dry_run_gid("ProductVariant", f"{title} {time_str}"),
                inventory_item_id=None,
                created=False,
                variant_created=False,
            )

        new_variants = await catalog.create_variants(
            product.id,
            [
                {
                    "optionValues": [{"optionName": SEAT_OPTION_NAME, "name": time_str}],
                    "inventoryItem": {"tracked": True, "sku": seat_sku(date_str, time_str)},
                }
            ],
            strategy=variant_create_strategy(variants),
        )
        variant = _find_time_variant(new_variants, time_str)
        if variant is None:
            raise UpstreamShapeError(
                f"productVariantsBulkCreate returned no variant {time_str!r} for {title!r}",
                ctx={"productId": product.id},
            )
        kept = [v for v in variants if v.title != STANDALONE_VARIANT_TITLE]
        cache.put(title, with_variants(product, kept + [variant]))
        logger.info("Seat unit variant %s created: %s %s", variant.id, date_str, time_str)
        return SeatUnitResult(
            product_id=product.id,
            variant_id=variant.id,
            inventory_item_id=variant.inventory_item.id if variant.inventory_item else None,
            created=created,
            variant_created=True,
        )


async def ensure_inventory(
    catalog: Catalog,
    *,
    variant_id: str,
    location_id: str,
    quantity: int,
    inventory_item_id: str | None = None,
    dry_run: bool = False,
) -> bool:
    """
    Make `available` at the location equal `quantity` (absolute, never an increment).
    Activates the item at the location when it is not stocked there yet. Returns True when a write was made.
    """
    if dry_run:
        return False
    inventory = await catalog.get_inventory(variant_id, location_id)
    if inventory is None:
        raise UpstreamShapeError(f"variant {variant_id} not found", ctx={"variantId": variant_id})
    item_id = inventory_item_id or inventory.id
    if not item_id:
        raise UpstreamShapeError(f"variant {variant_id} has no inventory item", ctx={"variantId": variant_id})

    level = inventory.inventory_level
    if level is None:
        await catalog.activate_inventory(item_id, location_id, quantity)
        logger.info("Inventory activated for %s at %s: %d", variant_id, location_id, quantity)
        return True
    current = level.available()
    if current == quantity:
        logger.debug("Inventory for %s already %d", variant_id, quantity)
        return False
    await catalog.set_inventory_absolute(item_id, location_id, quantity)
    logger.info("Inventory corrected for %s at %s: %d -> %d", variant_id, location_id, current, quantity)
    return True
