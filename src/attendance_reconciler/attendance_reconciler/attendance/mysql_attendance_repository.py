from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ArrivalStatus, AttendanceStatus, DepartureStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_mysql_utc, to_decimal, to_mysql_utc
from .model import DailyAttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, employee_id, work_date, check_in, check_out, total_hours, regular_hours, overtime_hours,
    late_minutes, early_minutes, arrival_status, departure_status, status, missed_punch,
    shift_id, shift_start, shift_end, policy_version, notes
"""


def _row_to_record(r: dict) -> DailyAttendanceRecord:
    return DailyAttendanceRecord(
        record_id=int(r["record_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=from_mysql_utc(r.get("check_in")),
        check_out=from_mysql_utc(r.get("check_out")),
        total_hours=to_decimal(r["total_hours"]),
        regular_hours=to_decimal(r["regular_hours"]),
        overtime_hours=to_decimal(r["overtime_hours"]),
        late_minutes=int(r.get("late_minutes") or 0),
        early_minutes=int(r.get("early_minutes") or 0),
        arrival_status=ArrivalStatus(r["arrival_status"]) if r.get("arrival_status") else None,
        departure_status=DepartureStatus(r["departure_status"]),
        status=AttendanceStatus(r["status"]),
        missed_punch=bool(r.get("missed_punch")),
        shift_id=r.get("shift_id"),
        shift_start=from_mysql_utc(r.get("shift_start")),
        shift_end=from_mysql_utc(r.get("shift_end")),
        policy_version=r.get("policy_version"),
        notes=r.get("notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert(self, record: DailyAttendanceRecord) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO daily_attendance_records
                    (employee_id, work_date, check_in, check_out, total_hours, regular_hours, overtime_hours,
                     late_minutes, early_minutes, arrival_status, departure_status, status, missed_punch,
                     shift_id, shift_start, shift_end, policy_version, notes, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, UTC_TIMESTAMP())
                ON DUPLICATE KEY UPDATE
                    record_id=LAST_INSERT_ID(record_id),
                    check_in=VALUES(check_in),
                    check_out=VALUES(check_out),
                    total_hours=VALUES(total_hours),
                    regular_hours=VALUES(regular_hours),
                    overtime_hours=VALUES(overtime_hours),
                    late_minutes=VALUES(late_minutes),
                    early_minutes=VALUES(early_minutes),
                    arrival_status=VALUES(arrival_status),
                    departure_status=VALUES(departure_status),
                    status=VALUES(status),
                    missed_punch=VALUES(missed_punch),
                    shift_id=VALUES(shift_id),
                    shift_start=VALUES(shift_start),
                    shift_end=VALUES(shift_end),
                    policy_version=VALUES(policy_version),
                    notes=VALUES(notes),
                    updated_at=UTC_TIMESTAMP()
                """,
                (
                    record.employee_id,
                    record.work_date,
                    to_mysql_utc(record.check_in),
                    to_mysql_utc(record.check_out),
                    record.total_hours,
                    record.regular_hours,
                    record.overtime_hours,
                    record.late_minutes,
                    record.early_minutes,
                    record.arrival_status.value if record.arrival_status else None,
                    record.departure_status.value,
                    record.status.value,
                    int(record.missed_punch),
                    record.shift_id,
                    to_mysql_utc(record.shift_start),
                    to_mysql_utc(record.shift_end),
                    record.policy_version,
                    record.notes,
                ),
            )
            return int(cur.lastrowid)

    def delete_reconciled(self, employee_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE FROM daily_attendance_records
                WHERE employee_id=%s AND work_date=%s AND check_in IS NOT NULL
                """,
                (employee_id, work_date),
            )
            return cur.rowcount > 0

    def list_range(self, *, start: date, end: date, employee_id: Optional[int] = None) -> Sequence[DailyAttendanceRecord]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM daily_attendance_records
            WHERE work_date BETWEEN %s AND %s
        """
        params: list = [start, end]
        if employee_id is not None:
            sql += " AND employee_id=%s"
            params.append(int(employee_id))
        sql += " ORDER BY employee_id, work_date"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_employee_ids(self, *, start: date, end: date) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT employee_id
                FROM daily_attendance_records
                WHERE work_date BETWEEN %s AND %s
                ORDER BY employee_id
                """,
                (start, end),
            )
            return [int(r["employee_id"]) for r in fetchall(cur)]
