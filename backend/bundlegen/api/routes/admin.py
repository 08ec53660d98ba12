"""
Admin diagnostics and maintenance: admin calendar, holidays, location, component links, theme templates.
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bundlegen.api.deps import get_catalog, get_shopify_client
from bundlegen.api.routes.feed import check_month
from bundlegen.core.errors import GeneratorError, InvalidInput, NotFound, error_to_http
from bundlegen.core.security import require_admin
from bundlegen.services.feed.assembler import admin_feed
from bundlegen.services.generator.bundles import fix_variant_component, repair_components
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.catalog import to_gid
from bundlegen.services.shopify.client import ShopifyClient

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class FixComponentBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    parent_variant_id: str = Field(min_length=1)
    child_variant_id: str = Field(min_length=1)
    qty: int = Field(ge=1)


@router.get("/events-feed-bundles")
async def events_feed_bundles(
    month: str = Query(""),
    collection: str = Query(""),
    client: ShopifyClient = Depends(get_shopify_client),
    catalog: Catalog = Depends(get_catalog),
):
    """Admin calendar: holiday-aware day types and variant ids resolved by bundle title."""
    try:
        check_month(month)
        if not collection:
            raise InvalidInput("missing collection")
        feed = await admin_feed(month, collection, catalog=catalog, client=client)
    except GeneratorError as e:
        raise error_to_http(e) from e
    return {"ok": True, "eventHandle": collection, **feed.to_json()}


@router.get("/holidays")
async def holidays(catalog: Catalog = Depends(get_catalog)):
    try:
        dates = await catalog.get_holiday_dates()
    except GeneratorError as e:
        raise error_to_http(e) from e
    return {"ok": True, "dates": sorted(dates)}


@router.get("/location")
async def location(catalog: Catalog = Depends(get_catalog)):
    try:
        location_id = await catalog.get_default_location_id()
    except GeneratorError as e:
        raise error_to_http(e) from e
    return {"ok": True, "locationId": location_id}


@router.get("/variant-components")
async def variant_components(
    variant_id: str = Query(..., alias="variantId", min_length=1),
    catalog: Catalog = Depends(get_catalog),
):
    """Component links of a bundle variant."""
    try:
        node = await catalog.get_variant_components(to_gid("ProductVariant", variant_id))
        if node is None:
            raise NotFound(f"variant {variant_id} not found", ctx={"variantId": variant_id})
    except GeneratorError as e:
        raise error_to_http(e) from e
    return {
        "ok": True,
        "variantId": node.id,
        "variantTitle": node.title,
        "components": [
            {
                "relId": c.id,
                "childVariantId": c.product_variant.id,
                "childTitle": c.product_variant.title,
                "qty": c.quantity,
            }
            for c in node.product_variant_components.nodes
        ],
    }


@router.post("/variant-components/fix")
async def fix_components(body: FixComponentBody, catalog: Catalog = Depends(get_catalog)):
    """Remove and re-create one parent -> child link with the given quantity."""
    parent = to_gid("ProductVariant", body.parent_variant_id)
    child = to_gid("ProductVariant", body.child_variant_id)
    try:
        components = await fix_variant_component(
            catalog, parent_variant_id=parent, child_variant_id=child, quantity=body.qty
        )
    except GeneratorError as e:
        raise error_to_http(e) from e
    logger.info("Component link fixed: %s -> %s x%d", parent, child, body.qty)
    return {"ok": True, "parentVariantId": parent, "components": components}


@router.post("/variant-components/repair")
async def repair(
    dry_run: bool = Query(True, alias="dryRun"),
    catalog: Catalog = Depends(get_catalog),
):
    """Re-assert the seat weight on every active Bundle variant's component link."""
    try:
        return await repair_components(catalog, dry_run=dry_run)
    except GeneratorError as e:
        raise error_to_http(e) from e


@router.get("/theme-product-templates")
async def theme_product_templates(catalog: Catalog = Depends(get_catalog)):
    try:
        templates = await catalog.list_theme_product_templates()
    except GeneratorError as e:
        raise error_to_http(e) from e
    return {"ok": True, **templates}
