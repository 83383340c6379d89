from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..common.datetime_utils import as_utc
from ..events.model import RawPunchEvent


@dataclass(frozen=True)
class ReconciliationKey:
    """Canonical identity of a punch: both parts must match for a true duplicate."""

    timestamp: datetime
    vendor_event_id: str

    @classmethod
    def for_event(cls, event: RawPunchEvent) -> "ReconciliationKey":
        return cls(
            timestamp=as_utc(event.timestamp).replace(microsecond=0),
            vendor_event_id=event.vendor_event_id.strip(),
        )


@dataclass(frozen=True)
class KeyOwner:
    """The employee-day whose reconciliation consumed a key."""

    employee_id: int
    work_date: date
