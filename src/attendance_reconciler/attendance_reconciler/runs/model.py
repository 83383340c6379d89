from __future__ import annotations

import threading
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

from ..core.enums import RunReason, RunStatus, RunTrigger

ERROR_REASONS = frozenset({RunReason.CONFIGURATION_ERROR, RunReason.UNIT_ERROR, RunReason.PENALTY_ERROR})


def new_batch_id() -> str:
    return str(uuid.uuid4())


@dataclass
class RunSummary:
    """Audit row for one reconciliation run; mutated by worker threads under a lock.

    `processed` counts employee-days written, `months_assessed` counts penalty
    months recomputed. Every other outcome lands in `reasons`.
    """

    batch_id: str
    trigger: RunTrigger
    actor_id: Optional[int] = None
    employee_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    status: RunStatus = RunStatus.RUNNING
    processed: int = 0
    months_assessed: int = 0
    reasons: Counter = field(default_factory=Counter)
    message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def errors(self) -> int:
        return sum(n for reason, n in self.reasons.items() if reason in ERROR_REASONS)

    @property
    def skipped(self) -> int:
        return sum(n for reason, n in self.reasons.items() if reason not in ERROR_REASONS)

    def add_day(self, counts: Mapping[RunReason, int]) -> None:
        with self._lock:
            self.processed += 1
            self.reasons.update(counts)

    def add_month(self) -> None:
        with self._lock:
            self.months_assessed += 1

    def add_skipped(self, reason: RunReason, count: int = 1) -> None:
        with self._lock:
            self.reasons[reason] += count

    def add_error(self, reason: RunReason, count: int = 1) -> None:
        with self._lock:
            self.reasons[reason] += count

    def cover(self, days: Iterable[date]) -> None:
        days = list(days)
        if not days:
            return
        with self._lock:
            self.date_from = min([d for d in (self.date_from, *days) if d is not None])
            self.date_to = max([d for d in (self.date_to, *days) if d is not None])

    def finish(self, status: RunStatus, at: datetime, message: Optional[str] = None) -> None:
        with self._lock:
            self.status = status
            self.finished_at = at
            self.message = message

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "batch_id": self.batch_id,
                "trigger": self.trigger.value,
                "actor_id": self.actor_id,
                "employee_id": self.employee_id,
                "date_from": self.date_from.isoformat() if self.date_from else None,
                "date_to": self.date_to.isoformat() if self.date_to else None,
                "status": self.status.value,
                "processed": self.processed,
                "months_assessed": self.months_assessed,
                "skipped": self.skipped,
                "errors": self.errors,
                "reasons": {reason.value: n for reason, n in sorted(self.reasons.items())},
                "message": self.message,
                "started_at": self.started_at.isoformat() if self.started_at else None,
                "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            }
