from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ALL_WEEKDAYS, Shift, ShiftAssignment
from .repository import ShiftAssignmentRepository, ShiftRepository


def _parse_weekdays(value: Optional[str]) -> frozenset[int]:
    """Weekdays are stored as a comma list, e.g. '0,1,2,3,4'."""

    if not value:
        return frozenset()
    return frozenset(int(part) for part in str(value).split(",") if part.strip())


def _row_to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        grace_period_minutes=int(r.get("grace_period_minutes") or 0),
        days_of_week=_parse_weekdays(r.get("days_of_week")) or ALL_WEEKDAYS,
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT shift_id, shift_name, start_time, end_time, grace_period_minutes, days_of_week
                FROM shifts
                WHERE shift_id=%s
                """,
                (shift_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _row_to_shift(r)


class MySQLShiftAssignmentRepository(ShiftAssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_employee(self, employee_id: int) -> Sequence[ShiftAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT assignment_id, employee_id, shift_id, work_date, weekdays, effective_from, effective_to
                FROM shift_assignments
                WHERE employee_id=%s
                ORDER BY assignment_id
                """,
                (int(employee_id),),
            )
            return [
                ShiftAssignment(
                    assignment_id=int(r["assignment_id"]),
                    employee_id=int(r["employee_id"]),
                    shift_id=int(r["shift_id"]),
                    work_date=r.get("work_date"),
                    weekdays=_parse_weekdays(r.get("weekdays")),
                    effective_from=r.get("effective_from"),
                    effective_to=r.get("effective_to"),
                )
                for r in fetchall(cur)
            ]
