from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import EmployeePenaltyTracking, PenaltyIncident


class PenaltyIncidentRepository(Protocol):
    def get(self, incident_id: int) -> Optional[PenaltyIncident]:
        raise NotImplementedError

    def list_between(self, employee_id: int, start: date, end: date) -> Sequence[PenaltyIncident]:
        """Incidents ordered by date then occurrence number."""

        raise NotImplementedError

    def replace_between(
        self,
        employee_id: int,
        start: date,
        end: date,
        incidents: Sequence[PenaltyIncident],
    ) -> Sequence[PenaltyIncident]:
        """Swap the period's incidents for `incidents`; returns them with ids assigned."""

        raise NotImplementedError

    def set_mitigation(self, incident_id: int, *, reason: str, actor_id: int, at: datetime) -> bool:
        raise NotImplementedError


class PenaltyTrackingRepository(Protocol):
    def get(self, employee_id: int, year: int, month: int) -> Optional[EmployeePenaltyTracking]:
        raise NotImplementedError

    def save(self, tracking: EmployeePenaltyTracking) -> None:
        raise NotImplementedError

    def list_for_month(self, year: int, month: int) -> Sequence[EmployeePenaltyTracking]:
        raise NotImplementedError
