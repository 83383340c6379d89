from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_instant
from ..core.constants import VENDOR_OVERTIME_CODES, VENDOR_PUNCH_IN_CODES, VENDOR_PUNCH_OUT_CODES
from ..core.enums import PunchSource, PunchState
from ..core.exceptions import ValidationError
from .model import RawPunchEvent


def parse_punch_state(value: Any) -> PunchState:
    code = str(value).strip().lower() if value is not None else ""
    if code in VENDOR_PUNCH_IN_CODES:
        return PunchState.IN
    if code in VENDOR_PUNCH_OUT_CODES:
        return PunchState.OUT
    if code in VENDOR_OVERTIME_CODES:
        return PunchState.OVERTIME
    return PunchState.UNKNOWN


def parse_source(row: Mapping[str, Any]) -> PunchSource:
    raw = str(row.get("source") or "").strip().lower()
    if raw == PunchSource.MOBILE_APP.value or row.get("mobile"):
        return PunchSource.MOBILE_APP
    return PunchSource.TERMINAL


def parse_feed_event(row: Mapping[str, Any]) -> RawPunchEvent:
    """Build a RawPunchEvent from one feed row.

    Accepts both the documented keys (`vendor_event_id`, `employee_code`,
    `timestamp`, `lat`, `lon`) and the vendor's own (`biotime_id`, `emp_code`,
    `punch_time`, `latitude`, `longitude`).
    """

    vendor_event_id = _first(row, "vendor_event_id", "biotime_id")
    employee_code = _first(row, "employee_code", "emp_code")
    timestamp = _first(row, "timestamp", "punch_time")

    if vendor_event_id is None or not str(vendor_event_id).strip():
        raise ValidationError("punch event is missing vendor_event_id")
    if employee_code is None or not str(employee_code).strip():
        raise ValidationError(f"punch event {vendor_event_id} is missing employee_code")
    if timestamp is None or not str(timestamp).strip():
        raise ValidationError(f"punch event {vendor_event_id} is missing timestamp")

    try:
        instant = parse_iso_instant(str(timestamp))
    except ValueError as exc:
        raise ValidationError(f"punch event {vendor_event_id} has invalid timestamp {timestamp!r}") from exc

    terminal = _first(row, "terminal_id", "terminal_sn")
    return RawPunchEvent(
        vendor_event_id=str(vendor_event_id).strip(),
        employee_code=str(employee_code).strip(),
        timestamp=instant,
        punch_state=parse_punch_state(row.get("punch_state")),
        source=parse_source(row),
        terminal_id=str(terminal).strip() if terminal else None,
        latitude=_float_or_none(_first(row, "lat", "latitude")),
        longitude=_float_or_none(_first(row, "lon", "longitude")),
        accuracy=_float_or_none(row.get("accuracy")),
    )


def _first(row: Mapping[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"invalid coordinate value {value!r}") from exc
