"""Price tier resolution and ticket mode. Pure: absence is None, never an exception."""
from bundlegen.core.constants import (
    DAY_FRIDAY,
    DAY_HOLIDAY,
    DAY_SATURDAY,
    DAY_SUNDAY,
    MODE_TRIPLE,
    MODE_UNICO,
)
from bundlegen.services.generator.calendar import weekday_key
from bundlegen.services.generator.types import PriceTable, PriceTier


def resolve_tier(
    date_str: str,
    day_type: str,
    prices: PriceTable,
    friday_as_weekend: bool,
    exceptions_by_date: dict[str, PriceTier] | None = None,
    tz: str | None = None,
) -> PriceTier | None:
    """
    First match wins:
      1. exceptions_by_date[date]
      2. holiday / saturday / sunday tier for those day types
      3. friday: weekend flag -> saturday, sunday, holiday, feriali; otherwise friday, feriali
      4. mon-thu: feriali.per_day[<weekday>], then feriali
    """
    if exceptions_by_date and date_str in exceptions_by_date:
        return exceptions_by_date[date_str]

    if day_type == DAY_HOLIDAY:
        return prices.holiday
    if day_type == DAY_SATURDAY:
        return prices.saturday
    if day_type == DAY_SUNDAY:
        return prices.sunday

    if day_type == DAY_FRIDAY:
        if friday_as_weekend:
            candidates = (prices.saturday, prices.sunday, prices.holiday, prices.feriali)
        else:
            candidates = (prices.friday, prices.feriali)
        return next((t for t in candidates if t is not None), None)

    feriali = prices.feriali
    if feriali is not None and feriali.per_day is not None:
        override = getattr(feriali.per_day, weekday_key(date_str, tz), None)
        if override is not None:
            return override
    return feriali


def decide_mode(tier: PriceTier | None) -> str | None:
    """'unico' when tier.unico is set (even alongside the triple fields), 'triple' for any of the three."""
    if tier is None:
        return None
    if tier.unico is not None:
        return MODE_UNICO
    if tier.adulto is not None or tier.bambino is not None or tier.handicap is not None:
        return MODE_TRIPLE
    return None


def is_mixed(tier: PriceTier | None) -> bool:
    """unico together with any of adulto/bambino/handicap."""
    if tier is None or tier.unico is None:
        return False
    return any(v is not None for v in (tier.adulto, tier.bambino, tier.handicap))
