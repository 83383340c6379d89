from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence

from ..attendance.model import DailyAttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import penalty_period_bounds, quantize_hours, week_bounds
from ..common.validators import require_date_range, require_month
from ..core.constants import ZERO_HOURS
from ..core.enums import ArrivalStatus, IncidentType
from ..penalties.model import PenaltyIncident
from ..penalties.repository import PenaltyIncidentRepository
from ..policy.service import PolicyCatalog
from .model import PeriodSummary

PERCENT_QUANT = Decimal("0.01")


class AttendanceReportService:
    """Read-only roll-up of daily records and non-mitigated incidents.

    The minimum-hours breach threshold scales with the days actually worked
    (each day contributes the minimum of the policy effective that day).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        incidents: PenaltyIncidentRepository,
        policies: PolicyCatalog,
    ):
        self._attendance = attendance
        self._incidents = incidents
        self._policies = policies

    def summarize(self, *, employee_id: int, start: date, end: date) -> PeriodSummary:
        require_date_range(start, end)
        records = self._attendance.list_range(start=start, end=end, employee_id=employee_id)
        incidents = self._incidents.list_between(employee_id, start, end)
        return self._build(employee_id, start, end, records, incidents)

    def monthly(self, *, employee_id: int, year: int, month: int) -> PeriodSummary:
        require_month(year, month)
        reset_day = self._policies.effective_on(date(year, month, 1)).monthly_reset_day
        start, end = penalty_period_bounds(year, month, reset_day)
        return self.summarize(employee_id=employee_id, start=start, end=end)

    def weekly(self, *, employee_id: int, day: date) -> PeriodSummary:
        start, end = week_bounds(day)
        return self.summarize(employee_id=employee_id, start=start, end=end)

    def summarize_all(self, *, start: date, end: date) -> list[PeriodSummary]:
        require_date_range(start, end)
        summaries = [
            self.summarize(employee_id=employee_id, start=start, end=end)
            for employee_id in self._attendance.list_employee_ids(start=start, end=end)
        ]
        summaries.sort(key=lambda s: s.net_hours, reverse=True)
        return summaries

    def _build(
        self,
        employee_id: int,
        start: date,
        end: date,
        records: Sequence[DailyAttendanceRecord],
        incidents: Sequence[PenaltyIncident],
    ) -> PeriodSummary:
        worked = [r for r in records if r.check_in is not None]

        credited = sum((r.total_hours for r in worked), ZERO_HOURS)
        overtime = sum((r.overtime_hours for r in worked), ZERO_HOURS)
        penalty = sum((i.effective_penalty_hours for i in incidents), ZERO_HOURS)
        missed_deduction = sum(
            (i.effective_penalty_hours for i in incidents if i.incident_type == IncidentType.MISSED_PUNCHOUT),
            ZERO_HOURS,
        )
        net = max(credited - missed_deduction, ZERO_HOURS)

        on_time = sum(1 for r in worked if r.arrival_status in (ArrivalStatus.EARLY, ArrivalStatus.ON_TIME))
        grace = sum(1 for r in worked if r.arrival_status == ArrivalStatus.GRACE)
        late = [r for r in worked if r.arrival_status == ArrivalStatus.LATE]

        punctuality = Decimal("0")
        if worked:
            punctuality = (Decimal(on_time) * 100 / Decimal(len(worked))).quantize(PERCENT_QUANT)
        average_late = Decimal("0")
        if late:
            average_late = (Decimal(sum(r.late_minutes for r in late)) / Decimal(len(late))).quantize(PERCENT_QUANT)

        minimum_expected = sum(
            (self._policies.effective_on(r.work_date).minimum_daily_hours for r in worked),
            ZERO_HOURS,
        )

        return PeriodSummary(
            employee_id=employee_id,
            period_start=start,
            period_end=end,
            working_days=len(worked),
            credited_hours=quantize_hours(credited),
            penalty_hours=quantize_hours(penalty),
            net_hours=quantize_hours(net),
            overtime_hours=quantize_hours(overtime),
            missed_punches=sum(1 for r in worked if r.missed_punch),
            on_time_days=on_time,
            grace_days=grace,
            late_days=len(late),
            punctuality_percentage=punctuality,
            average_late_minutes=average_late,
            minimum_expected_hours=quantize_hours(minimum_expected),
            below_minimum_hours=bool(worked) and net < minimum_expected,
        )
