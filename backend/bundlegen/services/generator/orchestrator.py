"""
Batch orchestrator: slot sequence -> Seat Unit -> Bundle -> component links -> prices.

Slots are processed one at a time, in calendar order. Per-slot pricing problems become warnings
and the batch moves on; backend failures are wrapped in SlotError with the slot attached. The
manual path lets SlotError end the request, the feed path records it and continues.
"""
import logging
from collections.abc import Awaitable, Iterator
from typing import TypeVar

import httpx

from bundlegen.config import settings
from bundlegen.core.constants import (
    MODE_TRIPLE,
    PREVIEW_LIMIT,
    SEATS_PER_TICKET,
    TICKETS_BY_MODE,
    WARN_AMBIGUOUS_PRICE,
    WARN_FEED_NO_TRIPLE_PRICE,
    WARN_FEED_VARIANT_MISMATCH,
    WARN_MIXED_PRICE,
    WARN_MODE_CONFLICT,
    WARN_NO_PRICE,
)
from bundlegen.core.errors import BackendError, BundleModeConflict, SlotError
from bundlegen.services.feed.assembler import admin_feed, apply_holidays
from bundlegen.services.feed.remote import fetch_feed_month
from bundlegen.services.feed.types import FeedMonth, FeedSlot
from bundlegen.services.generator.bundles import (
    ensure_bundle,
    ensure_seat_references,
    ensure_variant_leads_to_seat,
    set_variant_prices,
)
from bundlegen.services.generator.cache import LookupCache
from bundlegen.services.generator.calendar import Slot, classify_day, enumerate_slots
from bundlegen.services.generator.pricing import decide_mode, is_mixed, resolve_tier
from bundlegen.services.generator.seat_units import ensure_inventory, ensure_seat_unit
from bundlegen.services.generator.titles import normalize_time
from bundlegen.services.generator.types import (
    CollectionAttach,
    FeedInput,
    GenerateResponse,
    GenerateSummary,
    ManualInput,
    PreviewItem,
    VariantMap,
)
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.catalog import to_gid
from bundlegen.services.shopify.client import ShopifyClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _step(slot: Slot, operation: str, call: Awaitable[T]) -> T:
    """Await one backend step; a BackendError comes back out as SlotError(date, time, operation)."""
    try:
        return await call
    except BackendError as e:
        raise SlotError(slot.date, slot.time, operation, e) from e


class _Batch:
    """Counters, preview and warnings for one apply call, plus the per-batch lookup cache."""

    __slots__ = (
        "catalog",
        "data",
        "dry_run",
        "location_id",
        "holidays",
        "cache",
        "summary",
        "preview",
        "warnings",
        "bundle_ids",
    )

    def __init__(self, catalog: Catalog, data: ManualInput | FeedInput, dry_run: bool):
        self.catalog = catalog
        self.data = data
        self.dry_run = dry_run
        self.location_id = ""
        self.holidays: set[str] = set()
        self.cache = LookupCache()
        self.summary = GenerateSummary()
        self.preview: list[PreviewItem] = []
        self.warnings: list[str] = []
        self.bundle_ids: list[str] = []

    def record(self, item: PreviewItem) -> None:
        for w in item.warnings:
            self.warnings.append(f"{item.date} {item.time}: {w}")
        if len(self.preview) < PREVIEW_LIMIT:
            self.preview.append(item)

    async def reconcile(self, slot: Slot, item: PreviewItem, forced_mode: str | None = None) -> dict[str, str]:
        """
        Run one slot through the reconcilers and fill `item`. Returns the bundle variant map
        (empty when the slot was skipped).
        """
        data = self.data
        tier = resolve_tier(
            slot.date,
            slot.day_type,
            data.prices,
            data.friday_as_weekend,
            data.exceptions_by_date,
            settings.calendar_timezone,
        )
        item.price_plan = tier
        if tier is None:
            item.warnings.append(WARN_NO_PRICE)
            logger.warning("%s %s: no price tier (%s)", slot.date, slot.time, slot.day_type)
            return {}
        mode = decide_mode(tier)
        if mode is None:
            item.warnings.append(WARN_AMBIGUOUS_PRICE)
            logger.warning("%s %s: price tier has no ticket prices", slot.date, slot.time)
            return {}
        if forced_mode is None and is_mixed(tier):
            item.warnings.append(WARN_MIXED_PRICE)
        if forced_mode is not None and not any(t in tier.defined() for t in TICKETS_BY_MODE[forced_mode]):
            item.warnings.append(WARN_FEED_NO_TRIPLE_PRICE)
            logger.warning("%s %s: no %s prices in the tier", slot.date, slot.time, forced_mode)
            return {}
        mode = forced_mode or mode
        item.mode = mode

        seat = await _step(
            slot,
            "ensureSeatUnit",
            ensure_seat_unit(
                self.catalog,
                title_base=data.seat_unit_title_base,
                date_str=slot.date,
                time_str=slot.time,
                tags=data.tags,
                description=data.description,
                template_suffix=data.template_suffix,
                dry_run=self.dry_run,
                cache=self.cache,
            ),
        )
        item.seat_product_id = seat.product_id
        item.seat_variant_id = seat.variant_id
        if seat.created:
            self.summary.seats_created += 1

        adjusted = await _step(
            slot,
            "ensureInventory",
            ensure_inventory(
                self.catalog,
                variant_id=seat.variant_id,
                location_id=self.location_id,
                quantity=data.capacity_per_slot,
                inventory_item_id=seat.inventory_item_id,
                dry_run=self.dry_run,
            ),
        )
        if adjusted:
            self.summary.inventory_adjusted += 1

        try:
            bundle = await _step(
                slot,
                "ensureBundle",
                ensure_bundle(
                    self.catalog,
                    event_handle=data.event_handle,
                    title_base=data.bundle_title_base,
                    date_str=slot.date,
                    time_str=slot.time,
                    mode=mode,
                    seat_variant_id=seat.variant_id,
                    tags=data.tags,
                    description=data.description,
                    template_suffix=data.template_suffix,
                    publication_id=settings.shopify_online_store_publication_id or None,
                    dry_run=self.dry_run,
                    cache=self.cache,
                ),
            )
        except BundleModeConflict as e:
            item.warnings.append(WARN_MODE_CONFLICT)
            logger.warning("%s %s: %s", slot.date, slot.time, e)
            return {}
        item.bundle_product_id = bundle.product_id
        item.variant_map = VariantMap(**bundle.variant_map)
        if bundle.created_product:
            self.summary.bundles_created += 1
        self.summary.variants_created += bundle.created_variants
        if bundle.product_id not in self.bundle_ids:
            self.bundle_ids.append(bundle.product_id)

        for ticket, variant_id in bundle.variant_map.items():
            linked = await _step(
                slot,
                "upsertVariantComponent",
                ensure_variant_leads_to_seat(
                    self.catalog,
                    bundle_variant_id=variant_id,
                    seat_variant_id=seat.variant_id,
                    quantity=SEATS_PER_TICKET[ticket],
                    dry_run=self.dry_run,
                ),
            )
            if linked:
                self.summary.relationships_upserted += 1

        await _step(
            slot,
            "setSeatUnitMetafields",
            ensure_seat_references(
                self.catalog,
                product_id=bundle.product_id,
                variant_map=bundle.variant_map,
                seat_variant_id=seat.variant_id,
                current_refs=bundle.current_seat_refs,
                dry_run=self.dry_run,
            ),
        )

        self.summary.prices_updated += await _step(
            slot,
            "setVariantPrices",
            set_variant_prices(
                self.catalog,
                product_id=bundle.product_id,
                variant_map=bundle.variant_map,
                tier=tier,
                current_prices=bundle.current_prices,
                dry_run=self.dry_run,
            ),
        )
        return bundle.variant_map

    async def attach_collection(self) -> CollectionAttach | None:
        """Best effort: failures are reported in the response, never raised."""
        handle = self.data.collection
        if not handle:
            return None
        if self.dry_run:
            return CollectionAttach(ok=True, reason="dryRun", products=len(self.bundle_ids))
        if not self.bundle_ids:
            return CollectionAttach(ok=True, reason="no bundles", products=0)
        try:
            collection = await self.catalog.find_collection(handle)
            if collection is None:
                logger.warning("Collection %r not found; %d bundles not attached", handle, len(self.bundle_ids))
                return CollectionAttach(ok=False, reason=f"collection {handle!r} not found")
            await self.catalog.add_products_to_collection(collection.id, self.bundle_ids)
        except BackendError as e:
            logger.warning("Collection attach to %r failed: %s", handle, e)
            return CollectionAttach(ok=False, reason=str(e))
        logger.info("Attached %d bundles to collection %s", len(self.bundle_ids), collection.id)
        return CollectionAttach(ok=True, collection_id=collection.id, products=len(self.bundle_ids))


def _feed_mismatches(feed_slot: FeedSlot, variant_map: dict[str, str]) -> list[str]:
    out = []
    for ticket, feed_id in feed_slot.variant_ids().items():
        catalog_id = variant_map.get(ticket)
        if catalog_id and "DRYRUN-" not in catalog_id and catalog_id != feed_id:
            out.append(WARN_FEED_VARIANT_MISMATCH.format(ticket=ticket, feed_id=feed_id, catalog_id=catalog_id))
    return out


def feed_slots(feed: FeedMonth, month: str) -> Iterator[tuple[Slot, FeedSlot]]:
    """Slots of the month in date then time order. Assumes day types were already filled."""
    for day in sorted(feed.events, key=lambda d: d.date):
        if not day.date.startswith(f"{month}-"):
            continue
        for fs in sorted(day.slots, key=lambda s: normalize_time(s.time)):
            yield Slot(day.date, normalize_time(fs.time), fs.day_type or classify_day(day.date)), fs


async def _load_feed(
    batch: _Batch,
    data: FeedInput,
    month: str,
    *,
    http: httpx.AsyncClient | None,
    client: ShopifyClient | None,
) -> FeedMonth:
    collection = data.feed_collection or data.event_handle
    if data.feed_url:
        feed = await fetch_feed_month(data.feed_url, month, collection, http=http)
        apply_holidays(feed, batch.holidays)
        return feed
    return await admin_feed(
        month,
        collection,
        catalog=batch.catalog,
        client=client,
        holidays=batch.holidays,
        title_base=data.bundle_title_base,
        cache=batch.cache,
    )


async def apply(
    data: ManualInput | FeedInput,
    *,
    catalog: Catalog,
    dry_run: bool | None = None,
    http: httpx.AsyncClient | None = None,
    client: ShopifyClient | None = None,
) -> GenerateResponse:
    """
    Reconcile every slot of the input. dry_run=None uses the input's own flag.

    Raises SlotError (manual input), FeedFetchError (feed input) and BackendError for the
    batch-level reads (holidays, location).
    """
    dry_run = data.dry_run if dry_run is None else dry_run
    batch = _Batch(catalog, data, dry_run)
    batch.holidays = await catalog.get_holiday_dates()
    batch.location_id = (
        to_gid("Location", data.location_id) if data.location_id else await catalog.get_default_location_id()
    )
    logger.info(
        "Generate %s for %s (%s, dryRun=%s, location=%s)",
        data.source,
        data.event_handle,
        f"{data.start_date}..{data.end_date}" if isinstance(data, ManualInput) else ",".join(data.months),
        dry_run,
        batch.location_id,
    )

    if isinstance(data, ManualInput):
        for slot in enumerate_slots(
            data.start_date,
            data.end_date,
            data.weekday_slots,
            data.weekend_slots,
            data.friday_as_weekend,
            batch.holidays,
            settings.calendar_timezone,
        ):
            item = PreviewItem(date=slot.date, time=slot.time, day_type=slot.day_type)
            try:
                await batch.reconcile(slot, item)
            except SlotError as e:
                logger.error("Generate aborted at %s", e)
                raise
            batch.record(item)
    else:
        # All months are loaded before the first write
        feeds = [(month, await _load_feed(batch, data, month, http=http, client=client)) for month in data.months]
        for month, feed in feeds:
            for slot, feed_slot in feed_slots(feed, month):
                item = PreviewItem(date=slot.date, time=slot.time, day_type=slot.day_type)
                try:
                    variant_map = await batch.reconcile(slot, item, forced_mode=MODE_TRIPLE)
                except SlotError as e:
                    logger.warning("Feed slot failed, continuing: %s", e)
                    item.warnings.append(f"[{e.operation}] {e.cause}")
                    variant_map = {}
                item.warnings.extend(_feed_mismatches(feed_slot, variant_map))
                batch.record(item)

    attach = await batch.attach_collection()
    logger.info(
        "Generate %s done (dryRun=%s): %s, %d warnings",
        data.event_handle,
        dry_run,
        batch.summary.model_dump(by_alias=True),
        len(batch.warnings),
    )
    return GenerateResponse(
        ok=True,
        dry_run=dry_run,
        summary=batch.summary,
        preview=batch.preview,
        warnings=batch.warnings,
        collection_attach=attach,
    )
