from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, timedelta

import pytest

from src.attendance_reconciler.attendance_reconciler.core.enums import (
    PunchState,
    RunReason,
    RunStatus,
    RunTrigger,
    TerminalPurpose,
)
from src.attendance_reconciler.attendance_reconciler.core.exceptions import NotFoundError, ValidationError
from src.attendance_reconciler.attendance_reconciler.events.model import Terminal
from tests.fakes import BASE_POLICY, NOW, build_world, employee, punch

MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)


def without_ids(incidents):
    return [replace(i, incident_id=None) for i in incidents]


def full_day(world, day: int, code: str = "E001", check_in: str = "09:45", **kwargs) -> None:
    stamp = f"2025-03-{day:02d}T"
    world.add(
        punch(f"{code}-{day}-in", f"{stamp}{check_in}:00Z", code=code, **kwargs),
        punch(f"{code}-{day}-out", f"{stamp}17:00:00Z", PunchState.OUT, code=code, **kwargs),
    )


def test_range_run_summary():
    world = build_world()
    full_day(world, 3)
    world.add(punch("ghost", "2025-03-03T09:00:00Z", code="X999"))

    summary = world.runner.reconcile_range(date_from=MONDAY, date_to=date(2025, 3, 5), actor_id=7)

    assert summary.status == RunStatus.COMPLETED
    assert summary.trigger == RunTrigger.RANGE
    assert summary.processed == 3
    assert summary.months_assessed == 1
    assert summary.reasons[RunReason.EMPLOYEE_NOT_FOUND] == 1
    assert summary.errors == 0
    assert len(world.records()) == 1
    assert world.runs.writes == [(summary.batch_id, "running"), (summary.batch_id, "completed")]
    assert summary.to_dict()["reasons"] == {"employee_not_found": 1}


def test_rerunning_a_range_changes_nothing():
    world = build_world()
    for day in (3, 4, 5):
        full_day(world, day)

    world.runner.reconcile_range(date_from=MONDAY, date_to=date(2025, 3, 5))
    records, incidents = world.records(), without_ids(world.incident_list())
    second = world.runner.reconcile_range(date_from=MONDAY, date_to=date(2025, 3, 5))

    assert world.records() == records
    assert without_ids(world.incident_list()) == incidents
    assert second.reasons[RunReason.DUPLICATE] == 0


def test_single_employee_range_validates_input():
    world = build_world()

    with pytest.raises(NotFoundError):
        world.runner.reconcile_range(date_from=MONDAY, date_to=MONDAY, employee_id=99)
    with pytest.raises(ValidationError):
        world.runner.reconcile_range(date_from=TUESDAY, date_to=MONDAY)
    assert world.runs.runs == {}


def test_cross_midnight_shift_lands_on_start_date():
    world = build_world(employees=[employee(default_shift_id=2)])
    world.add(
        punch("in", "2025-03-03T21:50:00Z"),
        punch("out", "2025-03-04T06:10:00Z", PunchState.OUT),
    )

    world.runner.reconcile_range(date_from=MONDAY, date_to=TUESDAY)

    [record] = world.records()
    assert record.work_date == MONDAY
    assert str(record.total_hours) == "8.33"


def test_configuration_error_is_counted_per_day():
    policy = replace(BASE_POLICY, default_shift_start=None, default_shift_end=None)
    world = build_world(employees=[employee(default_shift_id=None)], policies=[policy])
    full_day(world, 3)

    summary = world.runner.reconcile_range(date_from=MONDAY, date_to=TUESDAY)

    assert summary.status == RunStatus.COMPLETED
    assert summary.reasons[RunReason.CONFIGURATION_ERROR] == 2
    assert summary.processed == 0
    assert world.records() == []


def test_failed_day_does_not_stop_the_run():
    world = build_world(employees=[employee(), employee(2, "E002")], workers=2)
    full_day(world, 3)
    full_day(world, 4)
    full_day(world, 3, code="E002")
    world.attendance.fail_on.add(MONDAY)

    summary = world.runner.reconcile_range(date_from=MONDAY, date_to=TUESDAY)

    assert summary.status == RunStatus.COMPLETED
    assert summary.reasons[RunReason.UNIT_ERROR] == 2
    assert summary.processed == 2
    assert [r.work_date for r in world.records(1)] == [TUESDAY]
    assert world.reservations.keys and all(owner.work_date == TUESDAY for owner, _ in world.reservations.keys.values())


def test_policy_load_failure_fails_the_run():
    world = build_world()
    world.policy_repo.fail = True

    with pytest.raises(RuntimeError):
        world.runner.reconcile_range(date_from=MONDAY, date_to=MONDAY, batch_id="b-fail")

    run = world.runs.get("b-fail")
    assert run.status == RunStatus.FAILED
    assert "policy table" in run.message


def test_cancel_before_start():
    world = build_world()
    full_day(world, 3)
    cancel = threading.Event()
    cancel.set()

    summary = world.runner.reconcile_range(date_from=MONDAY, date_to=MONDAY, cancel_event=cancel)

    assert summary.status == RunStatus.CANCELLED
    assert summary.processed == 0
    assert world.records() == []


def test_cancel_between_days_keeps_finished_days():
    world = build_world()
    full_day(world, 3)
    full_day(world, 4)
    cancel = threading.Event()
    reconcile_day = world.reconciliation.reconcile_day

    def reconcile_then_cancel(*args, **kwargs):
        outcome = reconcile_day(*args, **kwargs)
        cancel.set()
        return outcome

    world.reconciliation.reconcile_day = reconcile_then_cancel
    summary = world.runner.reconcile_range(date_from=MONDAY, date_to=TUESDAY, cancel_event=cancel)

    assert summary.status == RunStatus.CANCELLED
    assert summary.processed == 1
    assert summary.months_assessed == 0
    assert [r.work_date for r in world.records()] == [MONDAY]


def test_backlog_sorts_out_unknown_and_inactive_employees():
    world = build_world(employees=[employee(), employee(2, "E002", is_active=False)])
    full_day(world, 3)
    full_day(world, 3, code="E002")
    world.add(
        punch("fresh", "2025-03-31T09:00:00Z", code="NEW1", received_at=NOW - timedelta(hours=1)),
        punch("stale", "2025-03-28T09:00:00Z", code="OLD1", received_at=NOW - timedelta(hours=72)),
    )

    summary = world.runner.reconcile_backlog(batch_size=100)

    assert summary.trigger == RunTrigger.BACKLOG
    assert summary.processed == 1
    assert (summary.date_from, summary.date_to) == (MONDAY, MONDAY)
    assert summary.reasons[RunReason.EMPLOYEE_INACTIVE] == 2
    assert summary.reasons[RunReason.EMPLOYEE_PENDING] == 1
    assert summary.reasons[RunReason.EMPLOYEE_NOT_FOUND] == 1
    assert world.records(2) == []

    assert world.events.list_pending(limit=100, now=NOW) == []
    [pending] = world.events.list_pending(limit=100, now=NOW + timedelta(hours=1))
    assert pending.vendor_event_id == "fresh"

    later = world.runner.reconcile_backlog(batch_size=100, now=NOW + timedelta(hours=1))
    assert later.processed == 0
    assert later.reasons == {RunReason.EMPLOYEE_PENDING: 1}


def test_backlog_moves_past_codes_waiting_for_onboarding():
    world = build_world()
    world.add(
        punch("new-in", "2025-03-01T09:00:00Z", code="NEW1", received_at=NOW - timedelta(hours=1)),
        punch("new-out", "2025-03-01T17:00:00Z", PunchState.OUT, code="NEW1", received_at=NOW - timedelta(hours=1)),
    )
    full_day(world, 3)

    first = world.runner.reconcile_backlog(batch_size=2)
    second = world.runner.reconcile_backlog(batch_size=2)

    assert first.processed == 0
    assert first.reasons == {RunReason.EMPLOYEE_PENDING: 2}
    assert second.processed == 1
    assert [r.work_date for r in world.records()] == [MONDAY]

    expired = world.runner.reconcile_backlog(batch_size=2, now=NOW + timedelta(hours=48))
    assert expired.reasons == {RunReason.EMPLOYEE_NOT_FOUND: 2}
    assert world.events.list_pending(limit=10, now=NOW + timedelta(days=30)) == []


def test_backlog_defers_days_without_a_shift():
    policy = replace(BASE_POLICY, default_shift_start=None, default_shift_end=None)
    world = build_world(employees=[employee(), employee(2, "E002", default_shift_id=None)], policies=[policy])
    full_day(world, 3, code="E002")
    full_day(world, 4)

    first = world.runner.reconcile_backlog(batch_size=2)
    second = world.runner.reconcile_backlog(batch_size=2)

    assert first.processed == 0
    assert first.reasons[RunReason.CONFIGURATION_ERROR] == 1
    assert second.processed == 1
    assert [r.work_date for r in world.records(1)] == [TUESDAY]
    assert world.records(2) == []

    retry = world.events.list_pending(limit=10, now=NOW + timedelta(hours=1))
    assert sorted(e.vendor_event_id for e in retry) == ["E002-3-in", "E002-3-out"]


def test_reclassified_terminal_applies_to_the_next_range_run():
    world = build_world(terminals=[Terminal("T1", "Lobby", TerminalPurpose.ATTENDANCE)])
    world.add(
        punch("lobby", "2025-03-03T08:00:00Z", terminal_id="T1"),
        punch("hall-in", "2025-03-03T09:00:00Z"),
        punch("hall-out", "2025-03-03T17:00:00Z", PunchState.OUT),
    )

    world.runner.reconcile_range(date_from=MONDAY, date_to=MONDAY)
    assert world.records()[0].check_in.hour == 8

    world.feed.classify_terminal(terminal_id="T1", alias="Lobby door", purpose=TerminalPurpose.ACCESS_CONTROL)
    summary = world.runner.reconcile_range(date_from=MONDAY, date_to=MONDAY)
    assert world.records()[0].check_in.hour == 9
    assert summary.reasons[RunReason.ACCESS_CONTROL] == 1

    world.feed.classify_terminal(terminal_id="T1", alias="Lobby", purpose=TerminalPurpose.ATTENDANCE)
    world.runner.reconcile_range(date_from=MONDAY, date_to=MONDAY)
    assert world.records()[0].check_in.hour == 8
    assert world.events.skipped == {}


def test_backlog_counts_resent_punch_once():
    world = build_world()
    full_day(world, 3)
    world.add(punch("E001-3-in", "2025-03-03T09:45:00Z"))

    summary = world.runner.reconcile_backlog(batch_size=100)

    assert summary.reasons[RunReason.DUPLICATE] == 1
    assert str(world.records()[0].total_hours) == "7.25"
    assert world.events.list_pending(limit=100, now=NOW) == []


def test_backlog_skips_malformed_events():
    world = build_world()
    world.add(punch(" ", "2025-03-03T09:00:00Z"))

    summary = world.runner.reconcile_backlog(batch_size=10)

    assert summary.reasons[RunReason.MALFORMED_EVENT] == 1
    assert world.events.list_pending(limit=10, now=NOW) == []


def test_backlog_then_range_agree():
    backlog_world, range_world = build_world(), build_world()
    for world in (backlog_world, range_world):
        full_day(world, 3)
        full_day(world, 4, check_in="11:00")

    backlog_world.runner.reconcile_backlog(batch_size=100)
    range_world.runner.reconcile_range(date_from=MONDAY, date_to=TUESDAY)

    assert backlog_world.records() == range_world.records()
    assert without_ids(backlog_world.incident_list()) == without_ids(range_world.incident_list())
