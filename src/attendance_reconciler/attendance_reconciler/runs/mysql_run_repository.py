from __future__ import annotations

import json
from collections import Counter
from typing import Optional, Sequence

from ..core.enums import RunReason, RunStatus, RunTrigger
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_mysql_utc, to_mysql_utc
from .model import RunSummary
from .repository import RunRepository


def _row_to_run(r: dict) -> RunSummary:
    reasons = json.loads(r.get("reason_counts") or "{}")
    return RunSummary(
        batch_id=r["batch_id"],
        trigger=RunTrigger(r["trigger_type"]),
        actor_id=r.get("actor_id"),
        employee_id=r.get("employee_id"),
        date_from=r.get("date_from"),
        date_to=r.get("date_to"),
        status=RunStatus(r["status"]),
        processed=int(r.get("processed") or 0),
        months_assessed=int(r.get("months_assessed") or 0),
        reasons=Counter({RunReason(k): int(v) for k, v in reasons.items()}),
        message=r.get("message"),
        started_at=from_mysql_utc(r.get("started_at")),
        finished_at=from_mysql_utc(r.get("finished_at")),
    )


def _params(run: RunSummary) -> dict:
    data = run.to_dict()
    return {
        "batch_id": run.batch_id,
        "trigger_type": run.trigger.value,
        "actor_id": run.actor_id,
        "employee_id": run.employee_id,
        "date_from": run.date_from,
        "date_to": run.date_to,
        "status": run.status.value,
        "processed": data["processed"],
        "months_assessed": data["months_assessed"],
        "skipped": data["skipped"],
        "errors": data["errors"],
        "reason_counts": json.dumps(data["reasons"], sort_keys=True),
        "message": run.message,
        "started_at": to_mysql_utc(run.started_at),
        "finished_at": to_mysql_utc(run.finished_at),
    }


class MySQLRunRepository(RunRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, run: RunSummary) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO reconciliation_runs
                    (batch_id, trigger_type, actor_id, employee_id, date_from, date_to, status,
                     processed, months_assessed, skipped, errors, reason_counts, message, started_at, finished_at)
                VALUES
                    (%(batch_id)s, %(trigger_type)s, %(actor_id)s, %(employee_id)s, %(date_from)s, %(date_to)s,
                     %(status)s, %(processed)s, %(months_assessed)s, %(skipped)s, %(errors)s, %(reason_counts)s,
                     %(message)s, %(started_at)s, %(finished_at)s)
                """,
                _params(run),
            )

    def update(self, run: RunSummary) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE reconciliation_runs
                SET date_from=%(date_from)s, date_to=%(date_to)s, status=%(status)s,
                    processed=%(processed)s, months_assessed=%(months_assessed)s, skipped=%(skipped)s,
                    errors=%(errors)s, reason_counts=%(reason_counts)s, message=%(message)s,
                    finished_at=%(finished_at)s
                WHERE batch_id=%(batch_id)s
                """,
                _params(run),
            )

    def get(self, batch_id: str) -> Optional[RunSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM reconciliation_runs WHERE batch_id=%s", (batch_id,))
            r = fetchone(cur)
            return _row_to_run(r) if r else None

    def list_recent(self, *, limit: int = 20) -> Sequence[RunSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM reconciliation_runs ORDER BY started_at DESC LIMIT %s",
                (int(limit),),
            )
            return [_row_to_run(r) for r in fetchall(cur)]
