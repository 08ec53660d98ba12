"""Plan preview: what apply would create for a manual input, computed without any backend call."""
from pydantic import Field, field_validator

from bundlegen.config import settings
from bundlegen.core.constants import (
    BUNDLE_TAG,
    SEAT_UNIT_TAG,
    SEATS_PER_TICKET,
    TICKETS_BY_MODE,
    VARIANT_LABELS,
    WARN_AMBIGUOUS_PRICE,
    WARN_MIXED_PRICE,
    WARN_NO_PRICE,
)
from bundlegen.services.generator.calendar import enumerate_slots
from bundlegen.services.generator.pricing import decide_mode, is_mixed, resolve_tier
from bundlegen.services.generator.seat_units import merge_tags
from bundlegen.services.generator.titles import bundle_title, seat_sku, seat_unit_title, slugify
from bundlegen.services.generator.types import (
    ManualInput,
    PlanBundle,
    PlanItem,
    PlanResponse,
    PlanSeatUnit,
    PlanSummary,
    PlanVariant,
    _iso_date,
)


class PlanInput(ManualInput):
    """Manual input plus the holiday dates to classify with (the caller reads them once)."""
    holidays: list[str] = Field(default_factory=list)

    @field_validator("holidays")
    @classmethod
    def _holiday_dates(cls, v: list[str]) -> list[str]:
        return [_iso_date(d) for d in v]


def build_plan(data: PlanInput) -> PlanResponse:
    """Every slot (not capped), with titles, variants, seat weights and resolved prices."""
    summary = PlanSummary()
    items: list[PlanItem] = []
    tz = settings.calendar_timezone
    for slot in enumerate_slots(
        data.start_date,
        data.end_date,
        data.weekday_slots,
        data.weekend_slots,
        data.friday_as_weekend,
        data.holidays,
        tz,
    ):
        seat_title = seat_unit_title(data.seat_unit_title_base, slot.date)
        item = PlanItem(
            date=slot.date,
            time=slot.time,
            day_type=slot.day_type,
            capacity=data.capacity_per_slot,
            seat_unit=PlanSeatUnit(
                title=seat_title,
                handle=slugify(seat_title),
                tags=merge_tags(data.tags, [SEAT_UNIT_TAG]),
                variant_title=slot.time,
                sku=seat_sku(slot.date, slot.time),
            ),
        )
        summary.slots += 1
        tier = resolve_tier(
            slot.date, slot.day_type, data.prices, data.friday_as_weekend, data.exceptions_by_date, tz
        )
        item.price_plan = tier
        mode = decide_mode(tier)
        if tier is None or mode is None:
            item.warnings.append(WARN_NO_PRICE if tier is None else WARN_AMBIGUOUS_PRICE)
            summary.skipped += 1
            items.append(item)
            continue
        if is_mixed(tier):
            item.warnings.append(WARN_MIXED_PRICE)
        item.mode = mode

        prices = tier.defined()
        title = bundle_title(data.bundle_title_base, slot.date, slot.time)
        item.bundle = PlanBundle(
            title=title,
            handle=slugify(title),
            tags=merge_tags(data.tags, [BUNDLE_TAG, data.event_handle]),
            variants=[
                PlanVariant(
                    ticket=t,
                    title=VARIANT_LABELS[t],
                    seats_per_ticket=SEATS_PER_TICKET[t],
                    price=prices.get(t),
                )
                for t in TICKETS_BY_MODE[mode]
            ],
        )
        summary.bundles += 1
        summary.bundle_variants += len(item.bundle.variants)
        items.append(item)
    return PlanResponse(ok=True, summary=summary, plan=items)
