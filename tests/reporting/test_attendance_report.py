from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

from src.attendance_reconciler.attendance_reconciler.core.enums import PunchState, Role
from tests.fakes import BASE_POLICY, build_world, employee, punch


def workday(world, day: int, check_in: str, check_out: str | None = "17:00", code: str = "E001") -> None:
    stamp = f"2025-03-{day:02d}T"
    world.add(punch(f"{code}-{day}-in", f"{stamp}{check_in}:00Z", code=code))
    if check_out:
        world.add(punch(f"{code}-{day}-out", f"{stamp}{check_out}:00Z", PunchState.OUT, code=code))


def sample_week(policies=(BASE_POLICY,)):
    world = build_world(employees=[employee(), employee(2, "E002")], policies=policies)
    workday(world, 3, "08:55")
    workday(world, 4, "09:20")
    workday(world, 5, "09:45")
    workday(world, 6, "09:00", None)
    workday(world, 3, "09:00", code="E002")
    world.runner.reconcile_range(date_from=date(2025, 3, 3), date_to=date(2025, 3, 7))
    return world


def test_monthly_summary_rolls_up_records_and_penalties():
    summary = sample_week().reports.monthly(employee_id=1, year=2025, month=3)

    assert summary.period_start == date(2025, 3, 1)
    assert summary.period_end == date(2025, 3, 31)
    assert summary.working_days == 4
    assert summary.credited_hours == Decimal("30.50")
    assert summary.penalty_hours == Decimal("0.50")
    assert summary.net_hours == Decimal("30.00")
    assert summary.overtime_hours == Decimal("0.08")
    assert summary.missed_punches == 1
    assert (summary.on_time_days, summary.grace_days, summary.late_days) == (2, 1, 1)
    assert summary.punctuality_percentage == Decimal("50.00")
    assert summary.average_late_minutes == Decimal("45.00")
    assert summary.minimum_expected_hours == Decimal("24.00")
    assert summary.below_minimum_hours is False


def test_mitigated_missed_punch_restores_net_hours():
    world = sample_week()
    missed = world.incident_list()[-1]
    world.penalties.mitigate(incident_id=missed.incident_id, reason="Reader offline", actor_id=9, actor_role=Role.ADMIN)

    summary = world.reports.monthly(employee_id=1, year=2025, month=3)

    assert summary.penalty_hours == Decimal("0.00")
    assert summary.net_hours == Decimal("30.50")


def test_breach_uses_minimum_per_worked_day():
    world = sample_week(policies=[replace(BASE_POLICY, minimum_daily_hours=Decimal("8.0"))])

    summary = world.reports.monthly(employee_id=1, year=2025, month=3)
    assert summary.minimum_expected_hours == Decimal("32.00")
    assert summary.below_minimum_hours is True

    assert world.reports.monthly(employee_id=2, year=2025, month=3).below_minimum_hours is False


def test_weekly_summary_covers_monday_to_sunday():
    summary = sample_week().reports.weekly(employee_id=1, day=date(2025, 3, 5))

    assert (summary.period_start, summary.period_end) == (date(2025, 3, 3), date(2025, 3, 9))
    assert summary.working_days == 4


def test_summary_for_all_employees_orders_by_net_hours():
    summaries = sample_week().reports.summarize_all(start=date(2025, 3, 1), end=date(2025, 3, 31))

    assert [s.employee_id for s in summaries] == [1, 2]
    assert summaries[1].net_hours == Decimal("8.00")


def test_empty_period():
    summary = sample_week().reports.monthly(employee_id=1, year=2025, month=2)

    assert summary.working_days == 0
    assert summary.punctuality_percentage == 0
    assert summary.below_minimum_hours is False
    assert summary.to_dict()["net_hours"] == "0.00"
