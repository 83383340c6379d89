from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from src.attendance_reconciler.attendance_reconciler.core.enums import PunchState, Role
from src.attendance_reconciler.attendance_reconciler.core.exceptions import (
    AuthorizationError,
    ConsistencyError,
    NotFoundError,
    ValidationError,
)
from tests.fakes import BASE_POLICY, NOW, build_world, punch


def workday(world, day: int, check_in: str, check_out: str | None = "17:00", code: str = "E001") -> None:
    stamp = f"2025-03-{day:02d}T"
    world.add(punch(f"{code}-{day}-in", f"{stamp}{check_in}:00Z", code=code))
    if check_out:
        world.add(punch(f"{code}-{day}-out", f"{stamp}{check_out}:00Z", PunchState.OUT, code=code))


def late_month():
    world = build_world()
    workday(world, 3, "09:45")
    workday(world, 4, "09:45")
    workday(world, 5, "09:45")
    workday(world, 6, "11:15")
    world.runner.reconcile_range(date_from=date(2025, 3, 3), date_to=date(2025, 3, 6))
    return world


def without_ids(incidents):
    return [replace(i, incident_id=None) for i in incidents]


def test_run_assesses_the_month_with_courtesy_first():
    world = late_month()

    incidents = world.incident_list()

    assert [i.penalty_hours for i in incidents] == [Decimal("0"), Decimal("0.5"), Decimal("1.0"), Decimal("4.0")]
    assert incidents[0].courtesy_applied is True
    assert world.tracking.get(1, 2025, 3).total_penalty_hours == Decimal("5.50")
    assert world.tracking.get(1, 2025, 3).last_calculated_at == NOW


def test_reprocessing_is_idempotent():
    world = late_month()
    before = without_ids(world.incident_list())

    world.penalties.process_month(1, 2025, 3)
    world.penalties.process_month(1, 2025, 3)

    assert without_ids(world.incident_list()) == before
    assert world.penalties.verify_tracking(1, 2025, 3).total_penalty_hours == Decimal("5.50")


def test_staff_cannot_mitigate():
    world = late_month()
    incident = world.incident_list()[-1]

    with pytest.raises(AuthorizationError):
        world.penalties.mitigate(incident_id=incident.incident_id, reason="Traffic", actor_id=7, actor_role=Role.STAFF)


def test_reviewer_mitigation_keeps_incident_and_lowers_total():
    world = late_month()
    half_day = world.incident_list()[-1]

    mitigated = world.penalties.mitigate(
        incident_id=half_day.incident_id, reason="Hospital visit", actor_id=7, actor_role="reviewer"
    )

    assert mitigated.mitigation_applied is True
    assert mitigated.mitigated_by == 7
    assert mitigated.mitigated_at == NOW
    assert len(world.incident_list()) == 4
    assert world.incidents.get(half_day.incident_id).mitigation_reason == "Hospital visit"
    assert world.tracking.get(1, 2025, 3).total_penalty_hours == Decimal("1.50")


def test_mitigation_input_errors():
    world = late_month()
    incident_id = world.incident_list()[-1].incident_id

    with pytest.raises(ValidationError):
        world.penalties.mitigate(incident_id=incident_id, reason="  ", actor_id=7, actor_role=Role.ADMIN)
    with pytest.raises(NotFoundError):
        world.penalties.mitigate(incident_id=999, reason="x", actor_id=7, actor_role=Role.ADMIN)

    world.penalties.mitigate(incident_id=incident_id, reason="x", actor_id=7, actor_role=Role.ADMIN)
    with pytest.raises(ValidationError):
        world.penalties.mitigate(incident_id=incident_id, reason="again", actor_id=7, actor_role=Role.ADMIN)


def test_mitigation_survives_reprocessing():
    world = late_month()
    half_day = world.incident_list()[-1]
    world.penalties.mitigate(incident_id=half_day.incident_id, reason="Approved", actor_id=7, actor_role=Role.ADMIN)

    world.runner.reconcile_range(date_from=date(2025, 3, 3), date_to=date(2025, 3, 6))

    reprocessed = world.incident_list()[-1]
    assert reprocessed.incident_date == date(2025, 3, 6)
    assert reprocessed.mitigation_applied is True
    assert reprocessed.mitigation_reason == "Approved"
    assert world.penalties.verify_tracking(1, 2025, 3).total_penalty_hours == Decimal("1.50")


def test_verify_reports_drift_and_rebuild_repairs_it():
    world = late_month()
    cached = world.tracking.get(1, 2025, 3)
    world.tracking.save(replace(cached, early_checkout_count=3))

    with pytest.raises(ConsistencyError) as exc:
        world.penalties.verify_tracking(1, 2025, 3)
    assert exc.value.differences == {"early_checkout_count": (3, 0)}

    world.penalties.rebuild_tracking(1, 2025, 3)
    assert world.penalties.verify_tracking(1, 2025, 3).early_checkout_count == 0


def test_verify_reports_missing_cache():
    world = late_month()
    world.tracking.rows.clear()

    with pytest.raises(ConsistencyError) as exc:
        world.penalties.verify_tracking(1, 2025, 3)
    assert "tracking" in exc.value.differences


def test_mitigating_missed_punch_leaves_credited_hours():
    world = build_world()
    workday(world, 3, "09:00", None)
    workday(world, 4, "09:00", None)
    world.runner.reconcile_range(date_from=date(2025, 3, 3), date_to=date(2025, 3, 4))

    deduction = world.incident_list()[1]
    assert deduction.penalty_hours == Decimal("0.5")
    world.penalties.mitigate(incident_id=deduction.incident_id, reason="Badge fault", actor_id=7, actor_role=Role.ADMIN)

    assert world.attendance.get(1, date(2025, 3, 4)).total_hours == Decimal("7.50")
    assert world.tracking.get(1, 2025, 3).total_penalty_hours == Decimal("0.00")


def test_unknown_employee_is_not_found():
    with pytest.raises(NotFoundError):
        build_world().penalties.process_month(42, 2025, 3)


def test_reset_day_shifts_period():
    world = build_world(policies=[replace(BASE_POLICY, monthly_reset_day=16)])

    assert world.penalties.period_bounds(2025, 3) == (date(2025, 3, 16), date(2025, 4, 15))
    assert world.penalties.period_of(date(2025, 3, 10)) == (2025, 2)
