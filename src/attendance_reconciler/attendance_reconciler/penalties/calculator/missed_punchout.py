from __future__ import annotations

from typing import Optional

from ...attendance.model import DailyAttendanceRecord
from ...core.enums import IncidentType, PenaltyType
from ...employees.model import Employee
from ...policy.model import PolicyConfiguration
from .base import Detection, IncidentCalculator, PenaltyCharge, wage_amount

MISSED_PUNCHOUT_CATEGORY = "Missed Punch-out"


class MissedPunchOutCalculator(IncidentCalculator):
    """Flat deduction per occurrence, no escalation."""

    incident_type = IncidentType.MISSED_PUNCHOUT

    def detect(self, record: DailyAttendanceRecord, policy: PolicyConfiguration) -> Optional[Detection]:
        if not record.missed_punch:
            return None
        return Detection(
            incident_type=self.incident_type,
            category=MISSED_PUNCHOUT_CATEGORY,
            escalation_key=self.incident_type.value,
            scheduled_time=record.shift_end,
        )

    def charge(self, detection: Detection, *, occurrence: int, policy: PolicyConfiguration, employee: Employee) -> PenaltyCharge:
        hours = policy.missed_punchout_penalty_hours
        return PenaltyCharge(penalty_type=PenaltyType.WAGE_DEDUCTION, hours=hours, amount=wage_amount(hours, employee))
