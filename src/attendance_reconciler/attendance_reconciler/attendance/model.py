from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import ArrivalStatus, AttendanceStatus, DepartureStatus


@dataclass(frozen=True)
class DailyAttendanceRecord:
    """Domain entity: the one authoritative record for an employee-day.

    `total_hours` is credited time. For a missed punch-out it is the policy's
    full day; the deduction lives on the matching penalty incident so that a
    mitigation can waive it without touching the credit.
    """

    employee_id: int
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    late_minutes: int
    arrival_status: Optional[ArrivalStatus]
    departure_status: DepartureStatus
    status: AttendanceStatus
    missed_punch: bool
    early_minutes: int = 0
    shift_id: Optional[int] = None
    shift_start: Optional[datetime] = None
    shift_end: Optional[datetime] = None
    policy_version: Optional[int] = None
    notes: Optional[str] = None
    record_id: Optional[int] = None
