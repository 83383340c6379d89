from __future__ import annotations

from datetime import date

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_date_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError(f"date range is inverted: {start} > {end}")


def require_month(year: int, month: int) -> tuple[int, int]:
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"month out of range: {month}")
    if int(year) < 2000:
        raise ValidationError(f"year out of range: {year}")
    return int(year), int(month)


def require_positive(value: int, field_name: str) -> int:
    if int(value) <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return int(value)
