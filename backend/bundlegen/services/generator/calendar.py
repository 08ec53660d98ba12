"""
Day-type classification and slot enumeration. Pure functions: no network, no state.

Dates are ISO strings (YYYY-MM-DD). Weekdays are computed in the configured calendar timezone
(Europe/Rome by default) at local noon, so DST transitions never move a date to the previous day.
"""
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from bundlegen.config import settings
from bundlegen.core.constants import (
    DAY_FRIDAY,
    DAY_HOLIDAY,
    DAY_SATURDAY,
    DAY_SUNDAY,
    DAY_WEEKDAY,
)

WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
WEEKEND_DAY_TYPES = (DAY_SATURDAY, DAY_SUNDAY, DAY_HOLIDAY)


class Slot:
    """One (date, time) pair to reconcile, with its day type."""

    __slots__ = ("date", "time", "day_type")

    def __init__(self, date: str, time: str, day_type: str):
        self.date = date
        self.time = time
        self.day_type = day_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Slot):
            return NotImplemented
        return (self.date, self.time, self.day_type) == (other.date, other.time, other.day_type)

    def __repr__(self) -> str:
        return f"Slot({self.date} {self.time} {self.day_type})"

    def as_pair(self) -> tuple[str, str]:
        return (self.date, self.time)


def weekday_number(date_str: str, tz: str | None = None) -> int:
    """ISO weekday 1 (Monday) .. 7 (Sunday) of the date in the calendar timezone."""
    d = date.fromisoformat(date_str)
    local_noon = datetime.combine(d, time(12, 0), tzinfo=ZoneInfo(tz or settings.calendar_timezone))
    return local_noon.isoweekday()


def weekday_key(date_str: str, tz: str | None = None) -> str:
    return WEEKDAY_KEYS[weekday_number(date_str, tz) - 1]


def classify_day(date_str: str, holidays: Iterable[str] = (), tz: str | None = None) -> str:
    """Holiday membership wins over the weekday."""
    if date_str in set(holidays):
        return DAY_HOLIDAY
    n = weekday_number(date_str, tz)
    if n == 6:
        return DAY_SATURDAY
    if n == 7:
        return DAY_SUNDAY
    if n == 5:
        return DAY_FRIDAY
    return DAY_WEEKDAY


def uses_weekend_slots(day_type: str, friday_as_weekend: bool) -> bool:
    return day_type in WEEKEND_DAY_TYPES or (day_type == DAY_FRIDAY and friday_as_weekend)


def list_dates(start: str, end: str) -> list[str]:
    """Inclusive [start, end]; empty when end < start."""
    d = date.fromisoformat(start)
    stop = date.fromisoformat(end)
    out = []
    while d <= stop:
        out.append(d.isoformat())
        d += timedelta(days=1)
    return out


def month_dates(month: str) -> list[str]:
    """All dates of a YYYY-MM month."""
    first = date.fromisoformat(f"{month}-01")
    nxt = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    return list_dates(first.isoformat(), (nxt - timedelta(days=1)).isoformat())


def enumerate_slots(
    start: str,
    end: str,
    weekday_slots: list[str],
    weekend_slots: list[str],
    friday_as_weekend: bool,
    holidays: Iterable[str] = (),
    tz: str | None = None,
) -> Iterator[Slot]:
    """Dates in calendar order; per date, times in the order of the slot list that applies to it."""
    holiday_set = set(holidays)
    for d in list_dates(start, end):
        day_type = classify_day(d, holiday_set, tz)
        times = weekend_slots if uses_weekend_slots(day_type, friday_as_weekend) else weekday_slots
        for t in times:
            yield Slot(d, t, day_type)
