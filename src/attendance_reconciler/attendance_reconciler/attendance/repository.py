from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DailyAttendanceRecord


class AttendanceRepository(Protocol):
    def upsert(self, record: DailyAttendanceRecord) -> int:
        """Insert or replace the record keyed by (employee_id, work_date). Returns record_id."""

        raise NotImplementedError

    def delete_reconciled(self, employee_id: int, work_date: date) -> bool:
        """Remove a punch-derived record (absence rows written elsewhere are kept)."""

        raise NotImplementedError

    def list_range(
        self,
        *,
        start: date,
        end: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[DailyAttendanceRecord]:
        """Records ordered by employee then work date."""

        raise NotImplementedError

    def list_employee_ids(self, *, start: date, end: date) -> Sequence[int]:
        raise NotImplementedError
