from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...attendance.model import DailyAttendanceRecord
from ...common.datetime_utils import quantize_hours
from ...core.enums import DepartureStatus, IncidentType, PenaltyType
from ...employees.model import Employee
from ...policy.model import PolicyConfiguration
from .base import Detection, IncidentCalculator, PenaltyCharge

EARLY_CHECKOUT_CATEGORY = "Early Checkout"


class EarlyCheckoutCalculator(IncidentCalculator):
    """Missed hours charged at the employee's hourly rate plus the policy premium."""

    incident_type = IncidentType.EARLY_CHECKOUT

    def detect(self, record: DailyAttendanceRecord, policy: PolicyConfiguration) -> Optional[Detection]:
        if record.departure_status != DepartureStatus.EARLY:
            return None
        return Detection(
            incident_type=self.incident_type,
            category=EARLY_CHECKOUT_CATEGORY,
            escalation_key=self.incident_type.value,
            minutes_early=record.early_minutes,
            scheduled_time=record.shift_end,
            actual_time=record.check_out,
        )

    def charge(self, detection: Detection, *, occurrence: int, policy: PolicyConfiguration, employee: Employee) -> PenaltyCharge:
        missed_hours = Decimal(detection.minutes_early or 0) / Decimal(60)
        multiplier = Decimal(1) + policy.early_checkout_penalty_percentage / Decimal(100)
        hours = quantize_hours(missed_hours * multiplier)
        amount = None
        if employee.hourly_rate is not None:
            amount = quantize_hours(missed_hours * employee.hourly_rate * multiplier)
        return PenaltyCharge(penalty_type=PenaltyType.WAGE_DEDUCTION, hours=hours, amount=amount)
