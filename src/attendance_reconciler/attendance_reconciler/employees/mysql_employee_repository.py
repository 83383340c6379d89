from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_decimal
from .model import Employee
from .repository import EmployeeRepository


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._get_one("employee_id=%s", (int(employee_id),))

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        return self._get_one("employee_code=%s", (employee_code.strip(),))

    def _get_one(self, where: str, params: tuple) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, employee_code, full_name, is_active, default_shift_id, hourly_rate
                FROM employees
                WHERE {where}
                """,
                params,
            )
            r = fetchone(cur)
            if not r:
                return None
            return Employee(
                employee_id=int(r["employee_id"]),
                employee_code=r["employee_code"],
                full_name=r["full_name"],
                is_active=bool(r.get("is_active", True)),
                default_shift_id=r.get("default_shift_id"),
                hourly_rate=to_decimal(r.get("hourly_rate")),
            )
