"""
Input/output schemas for the slot generator.

Money is euro Decimal at this boundary; ShopifyCatalog formats it as the "11.00" string the Admin API wants.
JSON keys are camelCase (plus the "prices€" / "pricePlan€" keys the admin UI already sends).
"""
import re
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _iso_date(v: str) -> str:
    try:
        return date.fromisoformat(str(v).strip()).isoformat()
    except ValueError as e:
        raise ValueError(f"invalid date {v!r} (expected YYYY-MM-DD)") from e


def _slot_time(v: str) -> str:
    s = str(v).strip()
    if not TIME_RE.match(s):
        raise ValueError(f"invalid time {v!r} (expected HH:MM)")
    return s


# --- prices ---

Euro = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class PriceTier(_Schema):
    """Per-ticket-type euro prices for one day type (or one date)."""
    unico: Euro | None = None
    adulto: Euro | None = None
    bambino: Euro | None = None
    handicap: Euro | None = None

    def defined(self) -> dict[str, Decimal]:
        out = {}
        for key in ("unico", "adulto", "bambino", "handicap"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


class PerDayTiers(_Schema):
    mon: PriceTier | None = None
    tue: PriceTier | None = None
    wed: PriceTier | None = None
    thu: PriceTier | None = None


class WeekdayPriceTier(PriceTier):
    """Generic weekday tier ("feriali") with optional Monday-Thursday overrides."""
    per_day: PerDayTiers | None = None


class PriceTable(_Schema):
    holiday: PriceTier | None = None
    saturday: PriceTier | None = None
    sunday: PriceTier | None = None
    friday: PriceTier | None = None
    feriali: WeekdayPriceTier | None = None


# --- generator input ---


class _GenerateBase(_Schema):
    event_handle: str = Field(min_length=1)
    title_base: str | None = None
    seat_title_base: str | None = None
    capacity_per_slot: int = Field(gt=0)
    location_id: str | None = None
    friday_as_weekend: bool = False
    prices: PriceTable = Field(
        default_factory=PriceTable,
        validation_alias=AliasChoices("prices€", "prices"),
        serialization_alias="prices€",
    )
    exceptions_by_date: dict[str, PriceTier] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    template_suffix: str | None = None
    collection: str | None = None
    dry_run: bool = True

    @field_validator("exceptions_by_date", mode="before")
    @classmethod
    def _exception_dates(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {_iso_date(k): tier for k, tier in v.items()}
        return v

    @property
    def bundle_title_base(self) -> str:
        return (self.title_base or self.event_handle).strip()

    @property
    def seat_unit_title_base(self) -> str:
        return (self.seat_title_base or self.bundle_title_base).strip()


class ManualInput(_GenerateBase):
    """Date range + slot lists: slots are derived from the calendar."""
    source: Literal["manual"] = "manual"
    start_date: str
    end_date: str
    weekday_slots: list[str] = Field(default_factory=list)
    weekend_slots: list[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date")
    @classmethod
    def _dates(cls, v: str) -> str:
        return _iso_date(v)

    @field_validator("weekday_slots", "weekend_slots")
    @classmethod
    def _times(cls, v: list[str]) -> list[str]:
        return [_slot_time(t) for t in v]

    @model_validator(mode="after")
    def _range(self) -> "ManualInput":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class FeedInput(_GenerateBase):
    """Slots come from an events feed (one per month); bundles are always created in triple mode."""
    source: Literal["feed"]
    months: list[str] = Field(min_length=1)
    feed_url: str | None = None
    feed_collection: str | None = None

    @field_validator("months")
    @classmethod
    def _months(cls, v: list[str]) -> list[str]:
        for m in v:
            if not MONTH_RE.match(m):
                raise ValueError(f"invalid month {m!r} (expected YYYY-MM)")
        return v


GenerateInput = Annotated[Union[ManualInput, FeedInput], Field(discriminator="source")]


# --- generator output ---


class VariantMap(_Schema):
    unico: str | None = None
    adulto: str | None = None
    bambino: str | None = None
    handicap: str | None = None

    def items(self) -> list[tuple[str, str]]:
        return [(k, v) for k, v in self.model_dump().items() if v]


class PreviewItem(_Schema):
    date: str
    time: str
    day_type: str | None = None
    price_plan: PriceTier | None = Field(default=None, alias="pricePlan€")
    mode: str | None = None
    seat_product_id: str | None = None
    seat_variant_id: str | None = None
    bundle_product_id: str | None = None
    variant_map: VariantMap | None = None
    warnings: list[str] = Field(default_factory=list)


class GenerateSummary(_Schema):
    seats_created: int = 0
    bundles_created: int = 0
    variants_created: int = 0
    inventory_adjusted: int = 0
    relationships_upserted: int = 0
    prices_updated: int = 0


class CollectionAttach(_Schema):
    ok: bool
    reason: str | None = None
    collection_id: str | None = None
    products: int = 0


class GenerateResponse(_Schema):
    ok: bool = True
    dry_run: bool = True
    summary: GenerateSummary = Field(default_factory=GenerateSummary)
    preview: list[PreviewItem] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    collection_attach: CollectionAttach | None = None


# --- plan (no backend I/O) ---


class PlanVariant(_Schema):
    ticket: str
    title: str
    seats_per_ticket: int
    price: Decimal | None = None


class PlanSeatUnit(_Schema):
    title: str
    handle: str
    tags: list[str]
    variant_title: str
    sku: str


class PlanBundle(_Schema):
    title: str
    handle: str
    tags: list[str]
    variants: list[PlanVariant] = Field(default_factory=list)


class PlanItem(_Schema):
    date: str
    time: str
    day_type: str
    price_plan: PriceTier | None = Field(default=None, alias="pricePlan€")
    mode: str | None = None
    capacity: int
    seat_unit: PlanSeatUnit
    bundle: PlanBundle | None = None
    warnings: list[str] = Field(default_factory=list)


class PlanSummary(_Schema):
    slots: int = 0
    bundles: int = 0
    bundle_variants: int = 0
    skipped: int = 0


class PlanResponse(_Schema):
    ok: bool = True
    summary: PlanSummary = Field(default_factory=PlanSummary)
    plan: list[PlanItem] = Field(default_factory=list)
