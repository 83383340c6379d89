from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from ..attendance.model import DailyAttendanceRecord
from ..core.enums import PenaltyType
from ..employees.model import Employee
from ..policy.model import PolicyConfiguration
from .calculator.base import IncidentCalculator, PenaltyCharge
from .calculator.early_checkout import EarlyCheckoutCalculator
from .calculator.late_arrival import LateArrivalCalculator
from .calculator.missed_punchout import MissedPunchOutCalculator
from .model import EmployeePenaltyTracking, MonthAssessment, PenaltyIncident

PolicyLookup = Callable[..., PolicyConfiguration]

COURTESY_CHARGE = PenaltyCharge(penalty_type=PenaltyType.VERBAL_WARNING, hours=Decimal("0"))


def default_calculators() -> list[IncidentCalculator]:
    # Order is the same-day tie-break for occurrence numbering.
    return [LateArrivalCalculator(), EarlyCheckoutCalculator(), MissedPunchOutCalculator()]


class PenaltyEngine:
    """Pure month assessment: records in, ordered incidents and counters out.

    Records are walked in work-date order so occurrence numbers only ever
    grow. The first qualifying incident of the period becomes the courtesy
    warning when the effective policy allows it.
    """

    def __init__(self, calculators: Optional[Sequence[IncidentCalculator]] = None):
        self._calculators = list(calculators) if calculators is not None else default_calculators()

    def assess(
        self,
        *,
        employee: Employee,
        year: int,
        month: int,
        records: Iterable[DailyAttendanceRecord],
        policy_for: PolicyLookup,
    ) -> MonthAssessment:
        occurrences: Counter = Counter()
        escalation: Counter = Counter()
        courtesy_used = False
        incidents: list[PenaltyIncident] = []

        for record in sorted(records, key=lambda r: r.work_date):
            if record.employee_id != employee.employee_id or record.check_in is None:
                continue
            policy = policy_for(record.work_date)
            for calculator in self._calculators:
                detection = calculator.detect(record, policy)
                if detection is None:
                    continue

                occurrences[detection.incident_type] += 1
                escalation[detection.escalation_key] += 1
                courtesy = policy.first_time_courtesy_enabled and not courtesy_used
                if courtesy:
                    charge = COURTESY_CHARGE
                    courtesy_used = True
                else:
                    charge = calculator.charge(
                        detection,
                        occurrence=escalation[detection.escalation_key],
                        policy=policy,
                        employee=employee,
                    )

                incidents.append(
                    PenaltyIncident(
                        employee_id=employee.employee_id,
                        incident_date=record.work_date,
                        incident_type=detection.incident_type,
                        incident_category=detection.category,
                        monthly_occurrence_number=occurrences[detection.incident_type],
                        penalty_type=charge.penalty_type,
                        penalty_hours=charge.hours,
                        penalty_amount=charge.amount,
                        tier_level=detection.tier_level,
                        minutes_late=detection.minutes_late,
                        minutes_early=detection.minutes_early,
                        scheduled_time=detection.scheduled_time,
                        actual_time=detection.actual_time,
                        policy_version=policy.version,
                        courtesy_applied=courtesy,
                    )
                )

        tracking = EmployeePenaltyTracking.from_incidents(employee.employee_id, year, month, incidents)
        return MonthAssessment(incidents=incidents, tracking=tracking)
