from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.attendance_reconciler.attendance_reconciler.core.enums import PunchState, RunReason, TerminalPurpose
from src.attendance_reconciler.attendance_reconciler.events.model import Terminal
from tests.fakes import build_world, punch

MONDAY = date(2025, 3, 3)


def reconcile_monday(world, batch_id="b1"):
    emp = world.employees.get_by_id(1)
    events = world.reconciliation.load_days(emp, MONDAY, MONDAY).get(MONDAY, [])
    return world.reconciliation.reconcile_day(emp, MONDAY, events, batch_id=batch_id)


def test_recompute_yields_same_record_and_keys():
    world = build_world()
    world.add(punch("1", "2025-03-03T09:00:00Z"), punch("2", "2025-03-03T17:00:00Z", PunchState.OUT))

    first = reconcile_monday(world, "b1")
    second = reconcile_monday(world, "b2")

    assert first.record == second.record
    assert second.accepted == 2
    assert len(world.reservations.keys) == 2
    assert len(world.records()) == 1


def test_resent_punch_is_counted_as_duplicate():
    world = build_world()
    world.add(
        punch("1", "2025-03-03T09:00:00Z"),
        punch("1", "2025-03-03T09:00:00Z"),
        punch("2", "2025-03-03T17:00:00Z", PunchState.OUT),
    )

    outcome = reconcile_monday(world)

    assert outcome.accepted == 2
    assert outcome.counts[RunReason.DUPLICATE] == 1
    assert outcome.record.total_hours == Decimal("8.00")


def test_access_control_punch_never_sets_check_in():
    world = build_world(terminals=[Terminal("T-LOCK", "Server room", TerminalPurpose.ACCESS_CONTROL)])
    world.add(
        punch("door", "2025-03-03T08:00:00Z", terminal_id="T-LOCK"),
        punch("1", "2025-03-03T09:10:00Z", terminal_id="T-HALL"),
        punch("2", "2025-03-03T17:00:00Z", PunchState.OUT, terminal_id="T-HALL"),
    )

    outcome = reconcile_monday(world)

    assert outcome.record.check_in.hour == 9
    assert outcome.counts[RunReason.ACCESS_CONTROL] == 1
    assert list(world.events.skipped.values()) == [RunReason.ACCESS_CONTROL]


def test_orphaned_punch_out_creates_no_record():
    world = build_world()
    world.add(punch("2", "2025-03-03T17:00:00Z", PunchState.OUT))

    outcome = reconcile_monday(world)

    assert outcome.record is None
    assert outcome.counts[RunReason.ORPHANED_PUNCHOUT] == 1
    assert world.records() == []


def test_failed_write_rolls_back_reservations():
    world = build_world()
    world.add(punch("1", "2025-03-03T09:00:00Z"), punch("2", "2025-03-03T17:00:00Z", PunchState.OUT))
    world.attendance.fail_on.add(MONDAY)

    with pytest.raises(RuntimeError):
        reconcile_monday(world)

    assert world.reservations.keys == {}
    assert world.records() == []
    assert world.tx.rollbacks == 1

    world.attendance.fail_on.clear()
    assert reconcile_monday(world).accepted == 2


def test_later_punch_updates_the_same_record():
    world = build_world()
    world.add(punch("1", "2025-03-03T09:00:00Z"))
    first = reconcile_monday(world)

    world.add(punch("2", "2025-03-03T17:00:00Z", PunchState.OUT))
    second = reconcile_monday(world)

    assert first.record.missed_punch is True
    assert second.record.missed_punch is False
    assert second.record.record_id == first.record.record_id
