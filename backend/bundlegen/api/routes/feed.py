"""
Public calendar routes: events feed for a month and seat availability. No auth; open CORS.
"""
from fastapi import APIRouter, Depends, Query, Response

from bundlegen.api.deps import get_catalog, get_shopify_client
from bundlegen.core.errors import GeneratorError, InvalidInput, error_to_http
from bundlegen.services.availability import seat_availability
from bundlegen.services.feed.assembler import public_feed
from bundlegen.services.generator.types import MONTH_RE
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.client import ShopifyClient


def open_cors(response: Response) -> None:
    response.headers["Access-Control-Allow-Origin"] = "*"


router = APIRouter(dependencies=[Depends(open_cors)])


def check_month(month: str) -> str:
    if not MONTH_RE.match(month or ""):
        raise InvalidInput(f"invalid month {month!r} (expected YYYY-MM)", ctx={"month": month})
    return month


@router.get("/events-feed")
async def events_feed(
    month: str = Query(""),
    collection: str = Query(""),
    client: ShopifyClient = Depends(get_shopify_client),
    catalog: Catalog = Depends(get_catalog),
):
    """Bundles of the collection for one month: {month, events: [{date, slots}]}."""
    try:
        check_month(month)
        if not collection:
            raise InvalidInput("missing collection")
        feed = await public_feed(month, collection, client=client, catalog=catalog)
    except GeneratorError as e:
        raise error_to_http(e) from e
    return feed.to_json()


@router.get("/availability")
async def availability(
    seat_unit_variant_id: str | None = Query(None, alias="seatUnitVariantId"),
    bundle_variant_id: str | None = Query(None, alias="bundleVariantId"),
    location_id: str | None = Query(None, alias="locationId"),
    catalog: Catalog = Depends(get_catalog),
):
    try:
        return await seat_availability(
            catalog,
            seat_unit_variant_id=seat_unit_variant_id,
            bundle_variant_id=bundle_variant_id,
            location_id=location_id,
        )
    except GeneratorError as e:
        raise error_to_http(e) from e
