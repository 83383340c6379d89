from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import local_day_start
from ..core.enums import ReserveOutcome, RunReason
from ..core.protocols import Transactional
from ..dedup.model import KeyOwner
from ..dedup.service import Deduplicator
from ..employees.model import Employee
from ..events.model import RawPunchEvent
from ..events.repository import EventRepository, TerminalRepository
from ..policy.service import PolicyCatalog
from ..shifts.resolver import ShiftResolver
from .model import DailyAttendanceRecord
from .reconciler import DailyReconciler
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass
class DayOutcome:
    employee_id: int
    work_date: date
    record: Optional[DailyAttendanceRecord] = None
    accepted: int = 0
    counts: Counter = field(default_factory=Counter)


class ReconciliationService:
    """Reconciles one employee-day per call, as a single atomic unit.

    Inside the transaction the day's previous reservations are released and
    re-taken, access-control punches are marked skipped (or unmarked once their
    terminal is attendance again), and the record is
    upserted (or removed when no check-in remains). A failure anywhere rolls
    all of it back.
    """

    def __init__(
        self,
        events: EventRepository,
        terminals: TerminalRepository,
        attendance: AttendanceRepository,
        deduplicator: Deduplicator,
        resolver: ShiftResolver,
        policies: PolicyCatalog,
        tx: Transactional,
        *,
        reconciler: DailyReconciler | None = None,
    ):
        self._events = events
        self._terminals = terminals
        self._attendance = attendance
        self._dedup = deduplicator
        self._resolver = resolver
        self._policies = policies
        self._tx = tx
        self._reconciler = reconciler or DailyReconciler()

    def load_days(self, employee: Employee, start: date, end: date) -> dict[date, list[RawPunchEvent]]:
        """Group an employee's stored punches by work date for start..end inclusive."""

        tz = self._resolver.tz
        events = self._events.list_for_employee_between(
            employee_code=employee.employee_code,
            start=local_day_start(start - timedelta(days=1), tz),
            end=local_day_start(end + timedelta(days=2), tz),
        )
        days: dict[date, list[RawPunchEvent]] = {}
        for event in events:
            work_date = self._resolver.work_date_for(employee, event.timestamp)
            if start <= work_date <= end:
                days.setdefault(work_date, []).append(event)
        return days

    def reconcile_day(
        self,
        employee: Employee,
        work_date: date,
        events: Sequence[RawPunchEvent],
        *,
        batch_id: str,
    ) -> DayOutcome:
        outcome = DayOutcome(employee_id=employee.employee_id, work_date=work_date)
        owner = KeyOwner(employee_id=employee.employee_id, work_date=work_date)

        with self._tx.atomic():
            policy = self._policies.effective_on(work_date)
            window = self._resolver.resolve(employee, work_date)
            self._dedup.release(owner)

            accepted: list[RawPunchEvent] = []
            purposes: dict[str, bool] = {}
            for event in sorted(events, key=lambda e: (e.timestamp, e.vendor_event_id, e.event_id or 0)):
                if self._is_access_control(event, purposes):
                    if event.event_id is not None:
                        self._events.mark_skipped(event_id=event.event_id, reason=RunReason.ACCESS_CONTROL)
                    outcome.counts[RunReason.ACCESS_CONTROL] += 1
                    continue
                if event.skipped_reason == RunReason.ACCESS_CONTROL and event.event_id is not None:
                    # Terminal was reclassified back to attendance.
                    self._events.clear_skip(event_id=event.event_id, reason=RunReason.ACCESS_CONTROL)
                if self._dedup.try_reserve(event, owner=owner, batch_id=batch_id) == ReserveOutcome.DUPLICATE:
                    outcome.counts[RunReason.DUPLICATE] += 1
                    continue
                accepted.append(event)

            record = self._reconciler.reconcile(
                employee_id=employee.employee_id,
                work_date=work_date,
                events=accepted,
                window=window,
                policy=policy,
            )
            if record is None:
                self._attendance.delete_reconciled(employee.employee_id, work_date)
                if accepted:
                    outcome.counts[RunReason.ORPHANED_PUNCHOUT] += 1
            else:
                record = replace(record, record_id=self._attendance.upsert(record))

        outcome.record = record
        outcome.accepted = len(accepted)
        logger.debug(
            "Reconciled %s %s: accepted=%d counts=%s",
            employee.employee_code,
            work_date.isoformat(),
            outcome.accepted,
            dict(outcome.counts),
        )
        return outcome

    def list_records(self, *, start: date, end: date, employee_id: Optional[int] = None) -> Sequence[DailyAttendanceRecord]:
        return self._attendance.list_range(start=start, end=end, employee_id=employee_id)

    def employee_ids_with_records(self, start: date, end: date) -> Sequence[int]:
        return self._attendance.list_employee_ids(start=start, end=end)

    def _is_access_control(self, event: RawPunchEvent, purposes: dict[str, bool]) -> bool:
        if not event.terminal_id:
            return False
        if event.terminal_id not in purposes:
            terminal = self._terminals.get_by_id(event.terminal_id)
            purposes[event.terminal_id] = bool(terminal and terminal.is_access_control)
        return purposes[event.terminal_id]
