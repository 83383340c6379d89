from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import quantize_hours, whole_minutes
from ..core.constants import ZERO_HOURS
from ..core.enums import ArrivalStatus, AttendanceStatus, DepartureStatus, PunchState
from ..events.model import RawPunchEvent
from ..policy.model import PolicyConfiguration
from ..shifts.model import ShiftWindow
from .factory import HoursStrategyFactory
from .model import DailyAttendanceRecord


def pick_punches(events: Sequence[RawPunchEvent]) -> tuple[Optional[datetime], Optional[datetime]]:
    """Choose check-in and check-out instants from a day's attendance punches.

    Explicit `in`/`out` states win. Legacy terminals that send no state fall back
    to the earliest unknown punch for check-in and, when the day has only such
    punches, the latest one after it for check-out. Overtime punches never count.
    """

    ordered = sorted(events, key=lambda e: (e.timestamp, e.vendor_event_id))
    ins = [e.timestamp for e in ordered if e.punch_state == PunchState.IN]
    outs = [e.timestamp for e in ordered if e.punch_state == PunchState.OUT]
    unknown = [e.timestamp for e in ordered if e.punch_state == PunchState.UNKNOWN]

    check_in = ins[0] if ins else (unknown[0] if unknown else None)
    check_out = outs[-1] if outs else None

    if check_out is None and not ins and len(unknown) > 1 and unknown[-1] > unknown[0]:
        check_out = unknown[-1]
    return check_in, check_out


def classify_arrival(check_in: datetime, window: ShiftWindow) -> tuple[ArrivalStatus, int]:
    if check_in < window.start:
        return ArrivalStatus.EARLY, 0

    late_minutes = whole_minutes(check_in - window.start)
    if late_minutes == 0:
        return ArrivalStatus.ON_TIME, 0
    if late_minutes <= window.grace_period_minutes:
        return ArrivalStatus.GRACE, late_minutes
    return ArrivalStatus.LATE, late_minutes


def classify_departure(
    check_out: Optional[datetime],
    window: ShiftWindow,
    policy: PolicyConfiguration,
) -> tuple[DepartureStatus, int]:
    if check_out is None:
        return DepartureStatus.INCOMPLETE, 0

    if check_out < window.end:
        minutes_early = whole_minutes(window.end - check_out)
        if minutes_early > policy.early_checkout_minimum_minutes:
            return DepartureStatus.EARLY, minutes_early
        return DepartureStatus.ON_TIME, 0
    if check_out > window.end:
        return DepartureStatus.LATE, 0
    return DepartureStatus.ON_TIME, 0


class DailyReconciler:
    """Turns one employee-day of deduplicated punches into a DailyAttendanceRecord.

    Pure: same events, window and policy version always give the same record.
    """

    def __init__(self, *, strategy_factory: HoursStrategyFactory | None = None):
        self._factory = strategy_factory or HoursStrategyFactory()

    def reconcile(
        self,
        *,
        employee_id: int,
        work_date: date,
        events: Sequence[RawPunchEvent],
        window: ShiftWindow,
        policy: PolicyConfiguration,
    ) -> Optional[DailyAttendanceRecord]:
        check_in, check_out = pick_punches(events)
        if check_in is None:
            return None

        strategy = self._factory.for_punches(check_in=check_in, check_out=check_out, policy=policy)
        decision = strategy.decide(check_in=check_in, check_out=check_out, policy=policy)

        arrival, late_minutes = classify_arrival(check_in, window)
        departure, early_minutes = classify_departure(decision.check_out, window, policy)

        total = decision.total_hours
        duration = window.duration_hours
        regular = quantize_hours(min(total, duration))
        overtime = quantize_hours(max(ZERO_HOURS, total - duration))

        return DailyAttendanceRecord(
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=decision.check_out,
            total_hours=quantize_hours(max(Decimal(0), total)),
            regular_hours=regular,
            overtime_hours=overtime,
            late_minutes=late_minutes,
            arrival_status=arrival,
            departure_status=departure,
            status=AttendanceStatus.LATE if arrival == ArrivalStatus.LATE else AttendanceStatus.PRESENT,
            missed_punch=decision.missed_punch,
            early_minutes=early_minutes,
            shift_id=window.shift.shift_id,
            shift_start=window.start,
            shift_end=window.end,
            policy_version=policy.version,
            notes=decision.note,
        )
