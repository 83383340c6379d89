from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, to_mysql_utc
from .model import KeyOwner, ReconciliationKey
from .repository import ReservationRepository


class MySQLReservationRepository(ReservationRepository):
    """Reservations are rows of `reconciliation_keys`; the primary key is the race guard."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(self, *, key: ReconciliationKey, owner: KeyOwner, batch_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO reconciliation_keys
                    (event_timestamp, vendor_event_id, employee_id, work_date, batch_id, consumed_at)
                VALUES (%s, %s, %s, %s, %s, UTC_TIMESTAMP())
                """,
                (to_mysql_utc(key.timestamp), key.vendor_event_id, owner.employee_id, owner.work_date, batch_id),
            )
            return cur.rowcount == 1

    def release_owner(self, owner: KeyOwner) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM reconciliation_keys WHERE employee_id=%s AND work_date=%s",
                (owner.employee_id, owner.work_date),
            )
            return int(cur.rowcount)
