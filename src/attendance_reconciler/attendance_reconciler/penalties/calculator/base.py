from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ...attendance.model import DailyAttendanceRecord
from ...common.datetime_utils import quantize_hours
from ...core.enums import IncidentType, PenaltyType
from ...employees.model import Employee
from ...policy.model import PolicyConfiguration


@dataclass(frozen=True)
class Detection:
    incident_type: IncidentType
    category: str
    escalation_key: str
    tier_level: Optional[int] = None
    minutes_late: Optional[int] = None
    minutes_early: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    actual_time: Optional[datetime] = None


@dataclass(frozen=True)
class PenaltyCharge:
    penalty_type: PenaltyType
    hours: Decimal
    amount: Optional[Decimal] = None


class IncidentCalculator(ABC):
    """Calculator interface (Strategy Pattern for penalties): detect, then charge."""

    incident_type: IncidentType

    @abstractmethod
    def detect(self, record: DailyAttendanceRecord, policy: PolicyConfiguration) -> Optional[Detection]:
        raise NotImplementedError

    @abstractmethod
    def charge(
        self,
        detection: Detection,
        *,
        occurrence: int,
        policy: PolicyConfiguration,
        employee: Employee,
    ) -> PenaltyCharge:
        """`occurrence` is the 1-based count of this detection's escalation key in the month."""

        raise NotImplementedError


def wage_amount(hours: Decimal, employee: Employee) -> Optional[Decimal]:
    if employee.hourly_rate is None:
        return None
    return quantize_hours(hours * employee.hourly_rate)
