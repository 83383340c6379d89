from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import quantize_hours
from ..core.constants import ZERO_HOURS
from ..core.enums import IncidentType, PenaltyType


@dataclass(frozen=True)
class PenaltyIncident:
    """Domain entity: one detected violation. Only the mitigation fields change after creation."""

    employee_id: int
    incident_date: date
    incident_type: IncidentType
    incident_category: str
    monthly_occurrence_number: int
    penalty_type: PenaltyType
    penalty_hours: Decimal
    penalty_amount: Optional[Decimal] = None
    tier_level: Optional[int] = None
    minutes_late: Optional[int] = None
    minutes_early: Optional[int] = None
    scheduled_time: Optional[datetime] = None
    actual_time: Optional[datetime] = None
    policy_version: Optional[int] = None
    courtesy_applied: bool = False
    mitigation_applied: bool = False
    mitigation_reason: Optional[str] = None
    mitigated_by: Optional[int] = None
    mitigated_at: Optional[datetime] = None
    incident_id: Optional[int] = None

    @property
    def effective_penalty_hours(self) -> Decimal:
        return ZERO_HOURS if self.mitigation_applied else self.penalty_hours

    @property
    def natural_key(self) -> tuple[date, IncidentType]:
        return self.incident_date, self.incident_type


@dataclass(frozen=True)
class EmployeePenaltyTracking:
    """Per employee-month counter cache, always rebuildable from the incident log."""

    employee_id: int
    year: int
    month: int
    late_arrival_tier1_count: int = 0
    late_arrival_tier2_count: int = 0
    late_arrival_tier3_count: int = 0
    early_checkout_count: int = 0
    missed_punchout_count: int = 0
    total_penalty_hours: Decimal = ZERO_HOURS
    first_time_courtesy_used: bool = False
    last_calculated_at: Optional[datetime] = None

    @classmethod
    def from_incidents(
        cls,
        employee_id: int,
        year: int,
        month: int,
        incidents: Iterable[PenaltyIncident],
        *,
        calculated_at: Optional[datetime] = None,
    ) -> "EmployeePenaltyTracking":
        tiers = {1: 0, 2: 0, 3: 0}
        early = missed = 0
        total = ZERO_HOURS
        courtesy = False
        for incident in incidents:
            if incident.incident_type == IncidentType.LATE_ARRIVAL:
                level = min(max(incident.tier_level or 1, 1), 3)
                tiers[level] += 1
            elif incident.incident_type == IncidentType.EARLY_CHECKOUT:
                early += 1
            elif incident.incident_type == IncidentType.MISSED_PUNCHOUT:
                missed += 1
            total += incident.effective_penalty_hours
            courtesy = courtesy or incident.courtesy_applied
        return cls(
            employee_id=employee_id,
            year=year,
            month=month,
            late_arrival_tier1_count=tiers[1],
            late_arrival_tier2_count=tiers[2],
            late_arrival_tier3_count=tiers[3],
            early_checkout_count=early,
            missed_punchout_count=missed,
            total_penalty_hours=quantize_hours(total),
            first_time_courtesy_used=courtesy,
            last_calculated_at=calculated_at,
        )

    def counters(self) -> dict:
        return {
            "late_arrival_tier1_count": self.late_arrival_tier1_count,
            "late_arrival_tier2_count": self.late_arrival_tier2_count,
            "late_arrival_tier3_count": self.late_arrival_tier3_count,
            "early_checkout_count": self.early_checkout_count,
            "missed_punchout_count": self.missed_punchout_count,
            "total_penalty_hours": quantize_hours(self.total_penalty_hours),
            "first_time_courtesy_used": self.first_time_courtesy_used,
        }


@dataclass(frozen=True)
class MonthAssessment:
    incidents: Sequence[PenaltyIncident]
    tracking: EmployeePenaltyTracking
