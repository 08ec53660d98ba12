"""Seats left for a slot: `available` of its Seat Unit variant, at one location or summed over all."""
import logging
from typing import Any

from bundlegen.config import settings
from bundlegen.core.errors import InvalidInput
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.catalog import to_gid

logger = logging.getLogger(__name__)


async def seat_variant_for_bundle(catalog: Catalog, bundle_variant_id: str) -> str:
    """The seat variant a bundle variant consumes (its first component link)."""
    node = await catalog.get_variant_components(to_gid("ProductVariant", bundle_variant_id))
    components = node.product_variant_components.nodes if node else []
    if not components:
        raise InvalidInput(
            f"bundle variant {bundle_variant_id} has no component link to a seat unit",
            ctx={"bundleVariantId": bundle_variant_id},
        )
    return components[0].product_variant.id


async def seat_availability(
    catalog: Catalog,
    *,
    seat_unit_variant_id: str | None = None,
    bundle_variant_id: str | None = None,
    location_id: str | None = None,
) -> dict[str, Any]:
    if not seat_unit_variant_id and not bundle_variant_id:
        raise InvalidInput("pass seatUnitVariantId or bundleVariantId")
    if seat_unit_variant_id:
        seat_id = to_gid("ProductVariant", seat_unit_variant_id)
    else:
        seat_id = await seat_variant_for_bundle(catalog, bundle_variant_id)

    location_id = location_id or settings.default_location_id
    item = await catalog.get_inventory(seat_id, location_id or None)
    tracked = item.tracked if item is not None and item.tracked is not None else True

    per_location = []
    if location_id:
        level = item.inventory_level if item is not None else None
        if level is not None:
            per_location.append(
                {"locationId": level.location.id, "locationName": level.location.name, "available": level.available()}
            )
        source = "single_location"
    else:
        for edge in (item.inventory_levels or []) if item is not None else []:
            per_location.append(
                {
                    "locationId": edge.node.location.id,
                    "locationName": edge.node.location.name,
                    "available": edge.node.available(),
                }
            )
        source = "sum_all_locations"

    total = sum(p["available"] for p in per_location)
    logger.debug("Availability %s: %d (%s)", seat_id, total, source)
    return {
        "ok": True,
        "seatUnitVariantId": seat_id,
        "tracked": tracked,
        "totalAvailable": total,
        "perLocation": per_location,
        "source": source,
    }
