from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator
from zoneinfo import ZoneInfo

from ..core.constants import HOURS_QUANT


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_instant(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken as UTC (the vendor feed is UTC by contract).
    """

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return as_utc(parsed)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_day_start(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, datetime.min.time(), tzinfo=tz)


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def hours_between(start: datetime, end: datetime) -> Decimal:
    seconds = Decimal(int((end - start).total_seconds()))
    return quantize_hours(seconds / Decimal(3600))


def quantize_hours(value: Decimal) -> Decimal:
    return Decimal(value).quantize(HOURS_QUANT, rounding=ROUND_HALF_UP)


def whole_minutes(delta: timedelta) -> int:
    """Whole minutes in a non-negative delta (seconds are truncated)."""
    return int(delta.total_seconds() // 60)


def penalty_period_of(day: date, reset_day: int = 1) -> tuple[int, int]:
    """Return the (year, month) penalty period a date belongs to.

    A period named (Y, M) starts on `reset_day` of month M and ends the day before
    `reset_day` of the following month.
    """

    reset_day = _clamp_reset_day(reset_day)
    if day.day >= reset_day:
        return day.year, day.month
    if day.month == 1:
        return day.year - 1, 12
    return day.year, day.month - 1


def penalty_period_bounds(year: int, month: int, reset_day: int = 1) -> tuple[date, date]:
    reset_day = _clamp_reset_day(reset_day)
    start = date(year, month, reset_day)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    if reset_day == 1:
        end = date(year, month, monthrange(year, month)[1])
    else:
        end = date(next_year, next_month, reset_day) - timedelta(days=1)
    return start, end


def week_bounds(day: date) -> tuple[date, date]:
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def _clamp_reset_day(reset_day: int) -> int:
    return min(max(int(reset_day or 1), 1), 28)
