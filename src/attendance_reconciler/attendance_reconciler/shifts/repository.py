from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Shift, ShiftAssignment


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError


class ShiftAssignmentRepository(Protocol):
    def list_for_employee(self, employee_id: int) -> Sequence[ShiftAssignment]:
        raise NotImplementedError
