from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import penalty_period_bounds, penalty_period_of, utc_now
from ..common.validators import require_month, require_non_empty
from ..core.constants import MITIGATION_ROLES
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConsistencyError, NotFoundError, ValidationError
from ..core.protocols import Clock, Transactional
from ..employees.repository import EmployeeRepository
from ..policy.service import PolicyCatalog
from .engine import PenaltyEngine
from .model import EmployeePenaltyTracking, MonthAssessment, PenaltyIncident
from .repository import PenaltyIncidentRepository, PenaltyTrackingRepository

logger = logging.getLogger(__name__)


class PenaltyService:
    def __init__(
        self,
        incidents: PenaltyIncidentRepository,
        tracking: PenaltyTrackingRepository,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        policies: PolicyCatalog,
        tx: Transactional,
        *,
        engine: Optional[PenaltyEngine] = None,
        clock: Clock = utc_now,
    ):
        self._incidents = incidents
        self._tracking = tracking
        self._attendance = attendance
        self._employees = employees
        self._policies = policies
        self._tx = tx
        self._engine = engine or PenaltyEngine()
        self._clock = clock

    def period_bounds(self, year: int, month: int) -> tuple[date, date]:
        require_month(year, month)
        reset_day = self._policies.effective_on(date(year, month, 1)).monthly_reset_day
        return penalty_period_bounds(year, month, reset_day)

    def period_of(self, day: date) -> tuple[int, int]:
        return penalty_period_of(day, self._policies.effective_on(day).monthly_reset_day)

    def process_month(self, employee_id: int, year: int, month: int) -> MonthAssessment:
        """Recompute a whole penalty period from its attendance records.

        Incidents are replaced wholesale, so rerunning is idempotent. Mitigations
        already granted carry over to the incident with the same date and type.
        """

        employee = self._employees.get_by_id(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee {employee_id} not found")
        start, end = self.period_bounds(year, month)

        with self._tx.atomic():
            records = self._attendance.list_range(start=start, end=end, employee_id=employee.employee_id)
            previous = self._incidents.list_between(employee.employee_id, start, end)
            assessment = self._engine.assess(
                employee=employee,
                year=year,
                month=month,
                records=records,
                policy_for=self._policies.effective_on,
            )
            incidents = _carry_mitigation(assessment.incidents, previous)
            saved = self._incidents.replace_between(employee.employee_id, start, end, incidents)
            tracking = EmployeePenaltyTracking.from_incidents(
                employee.employee_id, year, month, saved, calculated_at=self._clock()
            )
            self._tracking.save(tracking)

        logger.info(
            "Penalties for employee %s %d-%02d: %d incidents, %s hours",
            employee.employee_code,
            year,
            month,
            len(saved),
            tracking.total_penalty_hours,
        )
        return MonthAssessment(incidents=saved, tracking=tracking)

    def mitigate(
        self,
        *,
        incident_id: int,
        reason: str,
        actor_id: int,
        actor_role: Union[Role, str],
        now: Optional[datetime] = None,
    ) -> PenaltyIncident:
        role = actor_role.value if isinstance(actor_role, Role) else str(actor_role)
        if role not in MITIGATION_ROLES:
            raise AuthorizationError("Only administrators or reviewers may mitigate penalties")
        reason = require_non_empty(reason, "Mitigation reason")
        now = now or self._clock()

        with self._tx.atomic():
            incident = self._incidents.get(incident_id)
            if incident is None:
                raise NotFoundError(f"Penalty incident {incident_id} not found")
            if incident.mitigation_applied:
                raise ValidationError(f"Penalty incident {incident_id} is already mitigated")
            if not self._incidents.set_mitigation(incident_id, reason=reason, actor_id=actor_id, at=now):
                raise ValidationError(f"Penalty incident {incident_id} could not be mitigated")

            year, month = self.period_of(incident.incident_date)
            self._rebuild(incident.employee_id, year, month)

        logger.info("Incident %s mitigated by %s", incident_id, actor_id)
        return replace(
            incident,
            mitigation_applied=True,
            mitigation_reason=reason,
            mitigated_by=actor_id,
            mitigated_at=now,
        )

    def rebuild_tracking(self, employee_id: int, year: int, month: int) -> EmployeePenaltyTracking:
        with self._tx.atomic():
            return self._rebuild(employee_id, year, month)

    def verify_tracking(self, employee_id: int, year: int, month: int) -> EmployeePenaltyTracking:
        """Compare the counter cache against the incident log; raise on any drift."""

        expected = self._recompute(employee_id, year, month)
        cached = self._tracking.get(employee_id, year, month)
        if cached is None:
            if any(expected.counters().values()):
                raise ConsistencyError(employee_id, year, month, {"tracking": (None, "missing")})
            return expected

        differences = {
            name: (value, expected.counters()[name])
            for name, value in cached.counters().items()
            if value != expected.counters()[name]
        }
        if differences:
            logger.warning("Tracking drift for employee %s %d-%02d: %s", employee_id, year, month, differences)
            raise ConsistencyError(employee_id, year, month, differences)
        return cached

    def list_incidents(self, employee_id: int, year: int, month: int) -> Sequence[PenaltyIncident]:
        start, end = self.period_bounds(year, month)
        return self._incidents.list_between(employee_id, start, end)

    def get_tracking(self, employee_id: int, year: int, month: int) -> Optional[EmployeePenaltyTracking]:
        require_month(year, month)
        return self._tracking.get(employee_id, year, month)

    def list_tracking(self, year: int, month: int) -> Sequence[EmployeePenaltyTracking]:
        require_month(year, month)
        return self._tracking.list_for_month(year, month)

    def _recompute(self, employee_id: int, year: int, month: int) -> EmployeePenaltyTracking:
        return EmployeePenaltyTracking.from_incidents(
            employee_id, year, month, self.list_incidents(employee_id, year, month), calculated_at=self._clock()
        )

    def _rebuild(self, employee_id: int, year: int, month: int) -> EmployeePenaltyTracking:
        tracking = self._recompute(employee_id, year, month)
        self._tracking.save(tracking)
        return tracking


def _carry_mitigation(
    incidents: Sequence[PenaltyIncident],
    previous: Sequence[PenaltyIncident],
) -> list[PenaltyIncident]:
    mitigated = {p.natural_key: p for p in previous if p.mitigation_applied}
    out: list[PenaltyIncident] = []
    for incident in incidents:
        prior = mitigated.get(incident.natural_key)
        if prior is not None:
            incident = replace(
                incident,
                mitigation_applied=True,
                mitigation_reason=prior.mitigation_reason,
                mitigated_by=prior.mitigated_by,
                mitigated_at=prior.mitigated_at,
            )
        out.append(incident)
    return out
