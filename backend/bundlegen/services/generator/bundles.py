"""
Bundle reconciler: one sellable product per slot with the variant set of its mode,
each variant linked to the slot's Seat Unit variant with its seat weight, and priced from the tier.
"""
import logging
from decimal import Decimal
from typing import Any

from bundlegen.config import settings
from bundlegen.core.constants import (
    BUNDLE_TAG,
    MODE_TRIPLE,
    MODE_UNICO,
    REPAIR_CHUNK_SIZE,
    SEAT_OPTION_NAME,
    SEAT_UNIT_METAFIELD_KEY,
    SEAT_UNIT_METAFIELD_TYPE,
    SEATS_PER_TICKET,
    SEATS_PER_TICKET_METAFIELD_KEY,
    TICKET_UNICO,
    TICKETS_BY_MODE,
    VARIANT_LABELS,
)
from bundlegen.core.errors import BundleModeConflict, ValidationError
from bundlegen.services.generator.cache import LookupCache
from bundlegen.services.generator.locks import title_locks
from bundlegen.services.generator.seat_units import (
    STANDALONE_VARIANT_TITLE,
    dry_run_gid,
    merge_tags,
    variant_create_strategy,
    with_variants,
)
from bundlegen.services.generator.titles import bundle_title, map_variants, slugify, ticket_for_label
from bundlegen.services.generator.types import PriceTier
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.types import ProductNode, VariantNode

logger = logging.getLogger(__name__)


class BundleResult:
    """Outcome of ensure_bundle. variant_map holds only the tickets of the resolved mode."""

    __slots__ = (
        "product_id",
        "variant_map",
        "created_product",
        "created_variants",
        "current_prices",
        "current_seat_refs",
    )

    def __init__(
        self,
        *,
        product_id: str,
        variant_map: dict[str, str],
        created_product: bool,
        created_variants: int,
        current_prices: dict[str, Decimal | None],
        current_seat_refs: dict[str, str | None] | None = None,
    ):
        self.product_id = product_id
        self.variant_map = variant_map
        self.created_product = created_product
        self.created_variants = created_variants
        self.current_prices = current_prices
        self.current_seat_refs = current_seat_refs or {}


def seat_unit_metafield(seat_variant_id: str) -> dict[str, str]:
    return {
        "namespace": settings.ticket_metafield_namespace,
        "key": SEAT_UNIT_METAFIELD_KEY,
        "type": SEAT_UNIT_METAFIELD_TYPE,
        "value": seat_variant_id,
    }


def bundle_variant_input(ticket: str, seat_variant_id: str | None = None) -> dict[str, Any]:
    weight = SEATS_PER_TICKET[ticket]
    metafields = [
        {
            "namespace": settings.ticket_metafield_namespace,
            "key": SEATS_PER_TICKET_METAFIELD_KEY,
            "type": "number_integer",
            "value": str(weight),
        }
    ]
    if seat_variant_id:
        metafields.append(seat_unit_metafield(seat_variant_id))
    return {
        "optionValues": [{"optionName": SEAT_OPTION_NAME, "name": VARIANT_LABELS[ticket]}],
        "inventoryItem": {"tracked": False},
        "metafields": metafields,
    }


def _check_mode(existing: dict[str, VariantNode], mode: str, title: str) -> None:
    if mode == MODE_UNICO:
        other = [t for t in TICKETS_BY_MODE[MODE_TRIPLE] if t in existing]
    else:
        other = [TICKET_UNICO] if TICKET_UNICO in existing else []
    if other:
        raise BundleModeConflict(
            f"{title!r} already has {', '.join(other)} variants; requested mode {mode}",
            ctx={"title": title, "mode": mode, "existing": sorted(existing)},
        )


async def ensure_bundle(
    catalog: Catalog,
    *,
    event_handle: str,
    title_base: str,
    date_str: str,
    time_str: str,
    mode: str,
    seat_variant_id: str | None = None,
    tags: list[str] | None = None,
    description: str | None = None,
    template_suffix: str | None = None,
    publication_id: str | None = None,
    dry_run: bool = False,
    cache: LookupCache | None = None,
) -> BundleResult:
    """
    Find-or-create the Bundle for the slot and add the variants its mode needs.
    Existing variants are never modified here. Raises BundleModeConflict when the product
    already carries variants of the other mode.
    """
    title = bundle_title(title_base, date_str, time_str)
    wanted = TICKETS_BY_MODE[mode]
    cache = cache if cache is not None else LookupCache()

    async with title_locks.hold(title):
        if title in cache:
            product = cache.get(title)
        else:
            product = await catalog.find_product(title, BUNDLE_TAG)
            cache.put(title, product)

        created_product = False
        if product is None:
            if dry_run:
                return BundleResult(
                    product_id=dry_run_gid("Product", title),
                    variant_map={t: dry_run_gid("ProductVariant", f"{title} {t}") for t in wanted},
                    created_product=False,
                    created_variants=0,
                    current_prices={},
                )
            product = await catalog.create_product(
                title,
                tags=merge_tags(tags, [BUNDLE_TAG, event_handle]),
                handle=slugify(title),
                description=description,
                template_suffix=template_suffix,
            )
            created_product = True
            if publication_id:
                await catalog.publish_product(product.id, publication_id)
            product = with_variants(product, await catalog.list_variants(product.id))

        variants = product.variant_list()
        existing = map_variants(variants)
        _check_mode(existing, mode, title)

        missing = [t for t in wanted if t not in existing]
        created_variants = 0
        variant_map = {t: existing[t].id for t in wanted if t in existing}
        if missing and dry_run:
            variant_map.update({t: dry_run_gid("ProductVariant", f"{title} {t}") for t in missing})
        elif missing:
            new_variants = await catalog.create_variants(
                product.id,
                [bundle_variant_input(t, seat_variant_id) for t in missing],
                strategy=variant_create_strategy(variants),
            )
            created = map_variants(new_variants)
            variant_map.update({t: v.id for t, v in created.items() if t in missing})
            existing.update(created)
            created_variants = len(new_variants)
            kept = [v for v in variants if v.title != STANDALONE_VARIANT_TITLE]
            product = with_variants(product, kept + new_variants)
            logger.info("Bundle %r: created %d variants (%s)", title, created_variants, ", ".join(missing))
        cache.put(title, product)

    return BundleResult(
        product_id=product.id,
        variant_map={t: variant_map[t] for t in wanted if t in variant_map},
        created_product=created_product,
        created_variants=created_variants,
        current_prices={v.id: v.price for v in existing.values()},
        current_seat_refs={
            v.id: v.metafield(settings.ticket_metafield_namespace, SEAT_UNIT_METAFIELD_KEY) for v in existing.values()
        },
    )


async def ensure_variant_leads_to_seat(
    catalog: Catalog,
    *,
    bundle_variant_id: str,
    seat_variant_id: str,
    quantity: int,
    dry_run: bool = False,
) -> bool:
    """
    Converge the bundle variant to exactly one component link (to the seat variant, with `quantity`).
    Same inputs twice is a no-op; a changed quantity updates the link in place. Returns True on a write.
    """
    if dry_run:
        return False
    node = await catalog.get_variant_components(bundle_variant_id)
    components = node.product_variant_components.nodes if node else []
    current = next((c for c in components if c.product_variant.id == seat_variant_id), None)
    stale = [c.product_variant.id for c in components if c.product_variant.id != seat_variant_id]

    if current is not None and current.quantity == quantity and not stale:
        return False

    if not stale:
        await catalog.upsert_variant_component(bundle_variant_id, seat_variant_id, quantity)
    else:
        link = [{"id": seat_variant_id, "quantity": quantity}]
        change: dict[str, Any] = {
            "parentProductVariantId": bundle_variant_id,
            "productVariantRelationshipsToRemove": stale,
        }
        if current is None:
            change["productVariantRelationshipsToCreate"] = link
        elif current.quantity != quantity:
            change["productVariantRelationshipsToUpdate"] = link
        await catalog.update_relationships([change])
        logger.warning("Removed stale component links %s from %s", stale, bundle_variant_id)
    logger.info("Component link %s -> %s x%d", bundle_variant_id, seat_variant_id, quantity)
    return True


async def ensure_seat_references(
    catalog: Catalog,
    *,
    product_id: str,
    variant_map: dict[str, str],
    seat_variant_id: str,
    current_refs: dict[str, str | None] | None = None,
    dry_run: bool = False,
) -> int:
    """Point each mapped variant's seat_unit metafield at the seat variant. Returns the number rewritten."""
    current_refs = current_refs or {}
    stale = [vid for vid in variant_map.values() if current_refs.get(vid) != seat_variant_id]
    if dry_run or not stale:
        return 0
    await catalog.set_variant_metafields(product_id, {vid: [seat_unit_metafield(seat_variant_id)] for vid in stale})
    logger.info("seat_unit metafield on %s -> %s for %d variants", product_id, seat_variant_id, len(stale))
    return len(stale)


async def set_variant_prices(
    catalog: Catalog,
    *,
    product_id: str,
    variant_map: dict[str, str],
    tier: PriceTier,
    current_prices: dict[str, Decimal | None] | None = None,
    dry_run: bool = False,
) -> int:
    """Push tier prices for the mapped variants whose current price differs. Returns the number updated."""
    wanted = tier.defined()
    current_prices = current_prices or {}
    changed: dict[str, Decimal] = {}
    for ticket, variant_id in variant_map.items():
        price = wanted.get(ticket)
        if price is None:
            continue
        if current_prices.get(variant_id) != price:
            changed[variant_id] = price
    if dry_run or not changed:
        return 0
    await catalog.set_variant_prices(product_id, changed)
    logger.info("Prices updated on %s: %s", product_id, {k: str(v) for k, v in changed.items()})
    return len(changed)


# --- admin maintenance ---


async def fix_variant_component(
    catalog: Catalog, *, parent_variant_id: str, child_variant_id: str, quantity: int
) -> list[dict[str, Any]]:
    """Remove every link parent -> child, then create one with `quantity`. Returns the parent's components."""
    parents = await catalog.update_relationships(
        [
            {
                "parentProductVariantId": parent_variant_id,
                "productVariantRelationshipsToRemove": [child_variant_id],
                "productVariantRelationshipsToCreate": [{"id": child_variant_id, "quantity": quantity}],
            }
        ]
    )
    parent = next((p for p in parents if p.id == parent_variant_id), parents[0] if parents else None)
    if parent is None:
        return []
    return [
        {"relId": c.id, "childVariantId": c.product_variant.id, "qty": c.quantity}
        for c in parent.product_variant_components.nodes
    ]


async def repair_components(
    catalog: Catalog,
    *,
    dry_run: bool = True,
    query: str = f"tag:{BUNDLE_TAG} AND status:active",
) -> dict[str, Any]:
    """
    Re-assert the seat weight on every active Bundle variant's component link
    (remove + create with SEATS_PER_TICKET). Variants without a link are skipped; links
    already carrying the right quantity are left alone.
    """
    products: list[ProductNode] = await catalog.search_products(query)
    changes: list[dict[str, Any]] = []
    checked = ok = unlinked = 0
    for product in products:
        for variant in product.variant_list():
            ticket = ticket_for_label(variant.label())
            if ticket is None:
                continue
            checked += 1
            node = await catalog.get_variant_components(variant.id)
            components = node.product_variant_components.nodes if node else []
            if not components:
                unlinked += 1
                continue
            seat_id = components[0].product_variant.id
            weight = SEATS_PER_TICKET[ticket]
            if len(components) == 1 and components[0].quantity == weight:
                ok += 1
                continue
            changes.append(
                {
                    "parentProductVariantId": variant.id,
                    "productVariantRelationshipsToRemove": [c.product_variant.id for c in components],
                    "productVariantRelationshipsToCreate": [{"id": seat_id, "quantity": weight}],
                }
            )

    result: dict[str, Any] = {
        "ok": True,
        "dryRun": dry_run,
        "products": len(products),
        "variantsChecked": checked,
        "alreadyOk": ok,
        "unlinked": unlinked,
        "toRepair": len(changes),
        "repaired": 0,
    }
    if dry_run:
        return result

    for offset in range(0, len(changes), REPAIR_CHUNK_SIZE):
        chunk = changes[offset:offset + REPAIR_CHUNK_SIZE]
        try:
            await catalog.update_relationships(chunk)
        except ValidationError as e:
            e.ctx.update({"offset": offset, "repaired": result["repaired"]})
            raise
        result["repaired"] += len(chunk)
        logger.info("Repaired component links %d-%d of %d", offset, offset + len(chunk), len(changes))
    return result
