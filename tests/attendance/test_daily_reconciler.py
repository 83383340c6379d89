from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.attendance_reconciler.attendance_reconciler.attendance.reconciler import DailyReconciler
from src.attendance_reconciler.attendance_reconciler.core.enums import (
    ArrivalStatus,
    AttendanceStatus,
    DepartureStatus,
    PunchState,
)
from tests.fakes import BASE_POLICY, DAY_SHIFT, NIGHT_SHIFT, punch

MONDAY = date(2025, 3, 3)
DAY = DAY_SHIFT.window_for(MONDAY, timezone.utc)
NIGHT = NIGHT_SHIFT.window_for(MONDAY, timezone.utc)


def reconcile(events, window=DAY):
    return DailyReconciler().reconcile(
        employee_id=1, work_date=MONDAY, events=events, window=window, policy=BASE_POLICY
    )


def day(check_in: str, check_out: str | None = None):
    events = [punch("in", f"2025-03-03T{check_in}Z")]
    if check_out:
        events.append(punch("out", f"2025-03-03T{check_out}Z", PunchState.OUT))
    return reconcile(events)


@pytest.mark.parametrize(
    "check_in, arrival, late",
    [
        ("08:55:00", ArrivalStatus.EARLY, 0),
        ("09:00:45", ArrivalStatus.ON_TIME, 0),
        ("09:30:00", ArrivalStatus.GRACE, 30),
        ("09:31:00", ArrivalStatus.LATE, 31),
    ],
)
def test_arrival_classification_at_grace_boundary(check_in, arrival, late):
    record = day(check_in, "17:00:00")

    assert record.arrival_status == arrival
    assert record.late_minutes == late


def test_late_arrival_marks_day_late():
    assert day("09:31:00", "17:00:00").status == AttendanceStatus.LATE
    assert day("09:30:00", "17:00:00").status == AttendanceStatus.PRESENT


def test_complete_day_credits_measured_span():
    record = day("09:00:00", "17:45:00")

    assert record.total_hours == Decimal("8.75")
    assert record.regular_hours == Decimal("8.00")
    assert record.overtime_hours == Decimal("0.75")
    assert record.departure_status == DepartureStatus.LATE
    assert record.missed_punch is False
    assert record.policy_version == BASE_POLICY.version


@pytest.mark.parametrize(
    "check_out, departure, early",
    [
        ("16:50:00", DepartureStatus.ON_TIME, 0),
        ("16:45:00", DepartureStatus.ON_TIME, 0),
        ("16:30:00", DepartureStatus.EARLY, 30),
        ("17:00:00", DepartureStatus.ON_TIME, 0),
    ],
)
def test_departure_classification(check_out, departure, early):
    record = day("09:00:00", check_out)

    assert record.departure_status == departure
    assert record.early_minutes == early


def test_missed_punch_out_credits_standard_day():
    record = day("09:00:00")

    assert record.check_out is None
    assert record.missed_punch is True
    assert record.total_hours == Decimal("7.50")
    assert record.overtime_hours == Decimal("0.00")
    assert record.departure_status == DepartureStatus.INCOMPLETE


@pytest.mark.parametrize(
    "out_at",
    [
        "2025-03-03T09:03:00Z",
        "2025-03-04T10:00:00Z",
    ],
)
def test_anomalous_span_is_treated_as_missed_punch(out_at):
    record = reconcile([punch("in", "2025-03-03T09:00:00Z"), punch("out", out_at, PunchState.OUT)])

    assert record.check_out is None
    assert record.missed_punch is True
    assert record.total_hours == Decimal("7.50")
    assert "Anomalous" in record.notes


def test_checkout_before_checkin_never_yields_negative_hours():
    record = reconcile([punch("out", "2025-03-03T08:00:00Z", PunchState.OUT), punch("in", "2025-03-03T09:00:00Z")])

    assert record.total_hours == Decimal("7.50")
    assert record.missed_punch is True


def test_day_without_check_in_has_no_record():
    assert reconcile([punch("out", "2025-03-03T17:00:00Z", PunchState.OUT)]) is None
    assert reconcile([]) is None


def test_stateless_punches_use_first_and_last():
    record = reconcile(
        [
            punch("a", "2025-03-03T17:10:00Z", PunchState.UNKNOWN),
            punch("b", "2025-03-03T09:05:00Z", PunchState.UNKNOWN),
            punch("c", "2025-03-03T12:00:00Z", PunchState.UNKNOWN),
        ]
    )

    assert record.check_in == datetime(2025, 3, 3, 9, 5, tzinfo=timezone.utc)
    assert record.check_out == datetime(2025, 3, 3, 17, 10, tzinfo=timezone.utc)


def test_overtime_punches_do_not_set_check_out():
    record = reconcile([punch("a", "2025-03-03T09:00:00Z"), punch("b", "2025-03-03T19:00:00Z", PunchState.OVERTIME)])

    assert record.check_out is None
    assert record.missed_punch is True


def test_cross_midnight_shift_measures_past_midnight():
    record = reconcile(
        [punch("in", "2025-03-03T21:50:00Z"), punch("out", "2025-03-04T06:10:00Z", PunchState.OUT)],
        window=NIGHT,
    )

    assert record.arrival_status == ArrivalStatus.EARLY
    assert record.total_hours == Decimal("8.33")
    assert record.overtime_hours == Decimal("0.33")
    assert record.departure_status == DepartureStatus.LATE


def test_reconcile_is_deterministic():
    events = [punch("in", "2025-03-03T09:40:00Z"), punch("out", "2025-03-03T16:00:00Z", PunchState.OUT)]
    assert reconcile(events) == reconcile(list(reversed(events)))
