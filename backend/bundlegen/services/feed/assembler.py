"""
Calendar feed assembly from already-created Bundle products.

A bundle's (date, time) is recovered from its title; variants are bucketed into ticket types by
label. The public feed reads the collection through the Storefront API; the admin feed adds
holiday-aware day types and fills in variant ids by rebuilding the expected bundle title.
"""
import logging
from collections.abc import Iterable

from bundlegen.core.constants import BUNDLE_TAG
from bundlegen.core.errors import BackendError, BackendNotConfigured
from bundlegen.services.feed.storefront import collection_products
from bundlegen.services.feed.types import FeedDay, FeedMonth, FeedSlot
from bundlegen.services.generator.cache import LookupCache
from bundlegen.services.generator.calendar import classify_day
from bundlegen.services.generator.titles import bundle_title, parse_bundle_title, variant_map_for
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.client import ShopifyClient
from bundlegen.services.shopify.types import ProductNode

logger = logging.getLogger(__name__)


def admin_bundle_query(event_handle: str) -> str:
    return f"tag:{event_handle} AND tag:{BUNDLE_TAG} AND status:active"


def build_month(
    products: Iterable[ProductNode],
    month: str,
    *,
    holidays: Iterable[str] = (),
    require_tag: bool = True,
) -> FeedMonth:
    """Per-date slots for the month, dates ascending and times ascending within a date."""
    holiday_set = set(holidays)
    by_date: dict[str, list[FeedSlot]] = {}
    for product in products:
        if require_tag and BUNDLE_TAG not in product.tags:
            continue
        parsed = parse_bundle_title(product.title)
        if parsed is None:
            continue
        date_str, time_str = parsed
        if not date_str.startswith(f"{month}-"):
            continue
        mode, variant_ids = variant_map_for(product)
        if mode is None:
            continue
        slot = FeedSlot(time=time_str, day_type=classify_day(date_str, holiday_set))
        slot.set_variant_ids(variant_ids)
        by_date.setdefault(date_str, []).append(slot)
    events = [
        FeedDay(date=d, slots=sorted(by_date[d], key=lambda s: s.time))
        for d in sorted(by_date)
    ]
    return FeedMonth(month=month, events=events)


async def public_feed(
    month: str,
    collection: str,
    *,
    client: ShopifyClient | None = None,
    catalog: Catalog | None = None,
) -> FeedMonth:
    """Storefront collection listing; falls back to an Admin tag search when no Storefront token is set."""
    client = client or ShopifyClient()
    if client.config.storefront_configured():
        products = await collection_products(client, collection)
        return build_month(products, month)
    if catalog is None:
        raise BackendNotConfigured("Storefront API not configured and no Admin catalog available for the feed")
    logger.warning("Storefront token not set; events feed for %s read through the Admin API", collection)
    products = await catalog.search_products(admin_bundle_query(collection))
    return build_month(products, month)


async def resolve_slot_variants(
    catalog: Catalog,
    title_base: str,
    date_str: str,
    time_str: str,
    cache: LookupCache | None = None,
) -> tuple[str, dict[str, str]] | None:
    """(product id, ticket -> variant id) of the bundle for the slot, found by its rebuilt title."""
    title = bundle_title(title_base, date_str, time_str)
    if cache is not None and title in cache:
        product = cache.get(title)
    else:
        product = await catalog.find_product(title)
        if cache is not None:
            cache.put(title, product)
    if product is None:
        return None
    _, variant_ids = variant_map_for(product)
    return product.id, variant_ids


async def fill_missing_variant_ids(
    feed: FeedMonth,
    catalog: Catalog,
    title_base: str,
    cache: LookupCache | None = None,
) -> int:
    """Resolve variant ids for slots that carry none. Returns how many slots were filled."""
    filled = 0
    for day in feed.events:
        for slot in day.slots:
            if slot.variant_ids():
                continue
            resolved = await resolve_slot_variants(catalog, title_base, day.date, slot.time, cache)
            if resolved is None:
                continue
            slot.set_variant_ids(resolved[1])
            filled += 1
    return filled


def apply_holidays(feed: FeedMonth, holidays: Iterable[str]) -> None:
    """Fill missing day types and promote holiday dates."""
    holiday_set = set(holidays)
    for day in feed.events:
        for slot in day.slots:
            if not slot.day_type or day.date in holiday_set:
                slot.day_type = classify_day(day.date, holiday_set)


async def admin_feed(
    month: str,
    collection: str,
    *,
    catalog: Catalog,
    client: ShopifyClient | None = None,
    holidays: Iterable[str] | None = None,
    title_base: str | None = None,
    cache: LookupCache | None = None,
) -> FeedMonth:
    """
    Public feed when it has events, else the active Bundles tagged with the collection handle.
    Day types are made holiday-aware and missing variant ids are resolved by title.
    """
    holiday_set = set(holidays) if holidays is not None else await catalog.get_holiday_dates()
    feed: FeedMonth | None = None
    client = client or ShopifyClient()
    if client.config.storefront_configured():
        try:
            feed = await public_feed(month, collection, client=client)
        except BackendError as e:
            logger.warning("Public feed for %s %s failed, using Admin search: %s", collection, month, e)
            feed = None
    if feed is None or not feed.events:
        products = await catalog.search_products(admin_bundle_query(collection))
        feed = build_month(products, month, holidays=holiday_set, require_tag=False)
    apply_holidays(feed, holiday_set)
    await fill_missing_variant_ids(feed, catalog, title_base or collection, cache or LookupCache())
    return feed
