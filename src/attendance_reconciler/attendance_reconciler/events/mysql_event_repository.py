from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import PunchSource, PunchState, RunReason, TerminalPurpose
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_mysql_utc, to_mysql_utc
from .model import RawPunchEvent, Terminal
from .repository import EventRepository, TerminalRepository

_EVENT_COLUMNS = """
    e.event_id, e.vendor_event_id, e.employee_code, e.event_timestamp, e.punch_state, e.source,
    e.terminal_id, e.latitude, e.longitude, e.accuracy, e.received_at, e.skipped_reason
"""


def _row_to_event(r: dict) -> RawPunchEvent:
    return RawPunchEvent(
        event_id=int(r["event_id"]),
        vendor_event_id=r["vendor_event_id"],
        employee_code=r["employee_code"],
        timestamp=from_mysql_utc(r["event_timestamp"]),
        punch_state=PunchState(r["punch_state"]),
        source=PunchSource(r["source"]),
        terminal_id=r.get("terminal_id"),
        latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
        longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
        accuracy=float(r["accuracy"]) if r.get("accuracy") is not None else None,
        received_at=from_mysql_utc(r.get("received_at")),
        skipped_reason=RunReason(r["skipped_reason"]) if r.get("skipped_reason") else None,
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, event: RawPunchEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO raw_punch_events
                    (vendor_event_id, employee_code, event_timestamp, punch_state, source,
                     terminal_id, latitude, longitude, accuracy, received_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, UTC_TIMESTAMP())
                """,
                (
                    event.vendor_event_id,
                    event.employee_code,
                    to_mysql_utc(event.timestamp),
                    event.punch_state.value,
                    event.source.value,
                    event.terminal_id,
                    event.latitude,
                    event.longitude,
                    event.accuracy,
                ),
            )
            return int(cur.lastrowid)

    def list_pending(self, *, limit: int, now: datetime) -> Sequence[RawPunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM raw_punch_events e
                LEFT JOIN reconciliation_keys k
                    ON k.event_timestamp = e.event_timestamp AND k.vendor_event_id = e.vendor_event_id
                WHERE k.vendor_event_id IS NULL AND e.skipped_reason IS NULL
                  AND (e.retry_after IS NULL OR e.retry_after <= %s)
                ORDER BY e.event_timestamp, e.event_id
                LIMIT %s
                """,
                (to_mysql_utc(now), int(limit)),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def list_for_employee_between(self, *, employee_code: str, start: datetime, end: datetime) -> Sequence[RawPunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM raw_punch_events e
                WHERE e.employee_code=%s
                  AND e.event_timestamp >= %s AND e.event_timestamp < %s
                  AND (e.skipped_reason IS NULL OR e.skipped_reason=%s)
                ORDER BY e.event_timestamp, e.event_id
                """,
                (employee_code, to_mysql_utc(start), to_mysql_utc(end), RunReason.ACCESS_CONTROL.value),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def list_employee_codes_between(self, *, start: datetime, end: datetime) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT employee_code
                FROM raw_punch_events
                WHERE event_timestamp >= %s AND event_timestamp < %s
                  AND (skipped_reason IS NULL OR skipped_reason=%s)
                ORDER BY employee_code
                """,
                (to_mysql_utc(start), to_mysql_utc(end), RunReason.ACCESS_CONTROL.value),
            )
            return [r["employee_code"] for r in fetchall(cur)]

    def mark_skipped(self, *, event_id: int, reason: RunReason) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE raw_punch_events
                SET skipped_reason=%s, skipped_at=UTC_TIMESTAMP()
                WHERE event_id=%s AND skipped_reason IS NULL
                """,
                (reason.value, int(event_id)),
            )
            return cur.rowcount > 0

    def clear_skip(self, *, event_id: int, reason: RunReason) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE raw_punch_events SET skipped_reason=NULL, skipped_at=NULL WHERE event_id=%s AND skipped_reason=%s",
                (int(event_id), reason.value),
            )
            return cur.rowcount > 0

    def defer(self, *, event_ids: Sequence[int], until: datetime) -> int:
        if not event_ids:
            return 0
        placeholders = ", ".join(["%s"] * len(event_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE raw_punch_events SET retry_after=%s WHERE event_id IN ({placeholders})",
                (to_mysql_utc(until), *(int(i) for i in event_ids)),
            )
            return cur.rowcount


class MySQLTerminalRepository(TerminalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, terminal_id: str) -> Optional[Terminal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT terminal_id, alias, purpose FROM terminals WHERE terminal_id=%s",
                (terminal_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Terminal(terminal_id=r["terminal_id"], alias=r["alias"], purpose=TerminalPurpose(r["purpose"]))

    def register(self, terminal: Terminal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO terminals (terminal_id, alias, purpose)
                VALUES (%s, %s, %s)
                ON DUPLICATE KEY UPDATE alias=VALUES(alias), purpose=VALUES(purpose)
                """,
                (terminal.terminal_id, terminal.alias, terminal.purpose.value),
            )
