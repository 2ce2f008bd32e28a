"""Calendar helpers: day normalisation, business days and holidays."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Set

from .domain import DateLike

SECONDS_PER_DAY = 24 * 60 * 60


def to_datetime(value: DateLike) -> datetime:
    """Coerce an ISO string, date or datetime into a naive local datetime."""

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"Cannot interpret {value!r} as a date")


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(to_datetime(value).date(), time.min)


def days_between(start: datetime, end: datetime) -> float:
    """Signed fractional number of days from ``start`` to ``end``."""

    return (end - start).total_seconds() / SECONDS_PER_DAY


def add_days(value: datetime, days: float) -> datetime:
    return value + timedelta(days=days)


def is_business_day(day: date) -> bool:
    return day.weekday() < 5


def add_business_days(value: DateLike, amount: int) -> datetime:
    """Move ``amount`` weekdays forwards (or backwards when negative).

    Saturdays and Sundays are skipped and never counted.
    """

    cursor = to_datetime(value)
    step = 1 if amount >= 0 else -1
    remaining = abs(amount)
    while remaining > 0:
        cursor += timedelta(days=step)
        if is_business_day(cursor.date()):
            remaining -= 1
    return cursor


def week_start(value: DateLike) -> datetime:
    """Monday 00:00 of the ISO week containing ``value``."""

    day = start_of_day(value)
    return day - timedelta(days=day.weekday())


# ----------------------------------------------------------------------
# Holidays and working-day counting
# ----------------------------------------------------------------------
def _observed(day: date) -> date:
    if day.weekday() == 5:
        return day - timedelta(days=1)
    if day.weekday() == 6:
        return day + timedelta(days=1)
    return day


def _nth_weekday(year: int, month: int, weekday: int, occurrence: int) -> date:
    first = date(year, month, 1)
    offset = (weekday - first.weekday()) % 7
    return first + timedelta(days=offset + (occurrence - 1) * 7)


def _last_weekday(year: int, month: int, weekday: int) -> date:
    last = date(year, month, calendar.monthrange(year, month)[1])
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def build_us_federal_holidays(year: int) -> Set[date]:
    """Observed US federal holidays of ``year`` plus adjacent New Year's days."""

    return {
        _observed(date(year - 1, 1, 1)),
        _observed(date(year, 1, 1)),
        _observed(date(year + 1, 1, 1)),
        _nth_weekday(year, 1, calendar.MONDAY, 3),  # MLK Day
        _nth_weekday(year, 2, calendar.MONDAY, 3),  # Presidents' Day
        _last_weekday(year, 5, calendar.MONDAY),  # Memorial Day
        _observed(date(year, 6, 19)),
        _observed(date(year, 7, 4)),
        _nth_weekday(year, 9, calendar.MONDAY, 1),  # Labor Day
        _nth_weekday(year, 10, calendar.MONDAY, 2),  # Columbus Day
        _observed(date(year, 11, 11)),
        _nth_weekday(year, 11, calendar.THURSDAY, 4),  # Thanksgiving
        _observed(date(year, 12, 25)),
    }


def is_working_day(day: date, holidays: Iterable[date] = ()) -> bool:
    return is_business_day(day) and day not in set(holidays)


def count_working_days(
    start: DateLike, end: DateLike, holidays: Optional[Iterable[date]] = None
) -> int:
    """Count working days in the inclusive range ``[start, end]``."""

    first = to_datetime(start).date()
    last = to_datetime(end).date()
    if holidays is None:
        holiday_set: Set[date] = set()
        for year in range(first.year, last.year + 1):
            holiday_set |= build_us_federal_holidays(year)
    else:
        holiday_set = set(holidays)
    count = 0
    cursor = first
    while cursor <= last:
        if is_business_day(cursor) and cursor not in holiday_set:
            count += 1
        cursor += timedelta(days=1)
    return count


__all__ = [
    "add_business_days",
    "add_days",
    "build_us_federal_holidays",
    "count_working_days",
    "days_between",
    "is_business_day",
    "is_working_day",
    "start_of_day",
    "to_datetime",
    "week_start",
]
