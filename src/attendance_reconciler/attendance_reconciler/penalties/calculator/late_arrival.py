from __future__ import annotations

from typing import Optional

from ...attendance.model import DailyAttendanceRecord
from ...core.enums import ArrivalStatus, IncidentType, PenaltyType
from ...employees.model import Employee
from ...policy.model import PolicyConfiguration
from .base import Detection, IncidentCalculator, PenaltyCharge, wage_amount


class LateArrivalCalculator(IncidentCalculator):
    """Tiered late arrival; escalation counts per tier, half-day tiers never escalate."""

    incident_type = IncidentType.LATE_ARRIVAL

    def detect(self, record: DailyAttendanceRecord, policy: PolicyConfiguration) -> Optional[Detection]:
        if record.arrival_status != ArrivalStatus.LATE:
            return None
        tier = policy.tier_for(record.late_minutes)
        if tier is None:
            return None
        return Detection(
            incident_type=self.incident_type,
            category=tier.name,
            escalation_key=f"{self.incident_type.value}:{tier.level}",
            tier_level=tier.level,
            minutes_late=record.late_minutes,
            scheduled_time=record.shift_start,
            actual_time=record.check_in,
        )

    def charge(self, detection: Detection, *, occurrence: int, policy: PolicyConfiguration, employee: Employee) -> PenaltyCharge:
        tier = next(t for t in policy.late_tiers if t.level == detection.tier_level)
        if tier.treatment == PenaltyType.HALF_DAY_ABSENCE:
            return PenaltyCharge(
                penalty_type=PenaltyType.HALF_DAY_ABSENCE,
                hours=policy.half_day_penalty_hours,
                amount=policy.half_day_deduction_amount,
            )

        hours = tier.hours_for(occurrence)
        if hours <= 0:
            return PenaltyCharge(penalty_type=PenaltyType.VERBAL_WARNING, hours=hours)
        return PenaltyCharge(penalty_type=PenaltyType.WAGE_DEDUCTION, hours=hours, amount=wage_amount(hours, employee))
