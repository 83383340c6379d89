from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from ..attendance.service import ReconciliationService
from ..common.datetime_utils import iter_dates, local_day_start, utc_now
from ..common.validators import require_date_range, require_positive
from ..core.constants import (
    DEFAULT_BACKLOG_RETRY_MINUTES,
    DEFAULT_EMPLOYEE_LOOKUP_RETRY_HOURS,
    DEFAULT_RECONCILE_WORKERS,
)
from ..core.enums import RunReason, RunStatus, RunTrigger
from ..core.exceptions import ConfigurationError, NotFoundError, RunCancelledError
from ..core.protocols import Clock
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..events.model import RawPunchEvent
from ..events.repository import EventRepository
from ..penalties.service import PenaltyService
from ..policy.service import PolicyCatalog
from ..shifts.resolver import ShiftResolver
from .model import RunSummary, new_batch_id
from .repository import RunRepository

logger = logging.getLogger(__name__)

Unit = tuple[Employee, Sequence[date]]


class ReconciliationRunner:
    """Entry point for every reconciliation: admin range reprocessing and backlog sweeps.

    Employees are independent and run on a worker pool. One employee's days
    and then its penalty months are processed in order by a single worker, so
    occurrence numbering never races. Per-unit failures are counted and the
    run carries on, and the punches of a failed day are deferred so the
    backlog moves past them until the retry delay expires. Failures before
    the units start (policy table unreadable) mark the run failed and propagate.
    """

    def __init__(
        self,
        *,
        events: EventRepository,
        employees: EmployeeRepository,
        reconciliation: ReconciliationService,
        penalties: PenaltyService,
        policies: PolicyCatalog,
        resolver: ShiftResolver,
        runs: RunRepository,
        workers: int = DEFAULT_RECONCILE_WORKERS,
        employee_lookup_retry_hours: int = DEFAULT_EMPLOYEE_LOOKUP_RETRY_HOURS,
        backlog_retry_minutes: int = DEFAULT_BACKLOG_RETRY_MINUTES,
        clock: Clock = utc_now,
    ):
        self._events = events
        self._employees = employees
        self._reconciliation = reconciliation
        self._penalties = penalties
        self._policies = policies
        self._resolver = resolver
        self._runs = runs
        self._workers = max(1, int(workers))
        self._retry_window = timedelta(hours=int(employee_lookup_retry_hours))
        self._retry_delay = timedelta(minutes=int(backlog_retry_minutes))
        self._clock = clock

    def reconcile_range(
        self,
        *,
        date_from: date,
        date_to: date,
        employee_id: Optional[int] = None,
        actor_id: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        batch_id: Optional[str] = None,
    ) -> RunSummary:
        require_date_range(date_from, date_to)
        selected: Optional[Employee] = None
        if employee_id is not None:
            selected = self._employees.get_by_id(employee_id)
            if selected is None:
                raise NotFoundError(f"Employee {employee_id} not found")

        summary = RunSummary(
            batch_id=batch_id or new_batch_id(),
            trigger=RunTrigger.RANGE,
            actor_id=actor_id,
            employee_id=employee_id,
            date_from=date_from,
            date_to=date_to,
            started_at=self._clock(),
        )

        def plan() -> list[Unit]:
            days = list(iter_dates(date_from, date_to))
            employees = [selected] if selected else self._range_employees(summary, date_from, date_to)
            return [(employee, days) for employee in employees]

        return self._execute(summary, plan, cancel_event)

    def reconcile_backlog(
        self,
        *,
        batch_size: int,
        now: Optional[datetime] = None,
        actor_id: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        batch_id: Optional[str] = None,
    ) -> RunSummary:
        """Reconcile the employee-days touched by up to `batch_size` pending events."""

        batch_size = require_positive(batch_size, "batch_size")
        now = now or self._clock()
        summary = RunSummary(
            batch_id=batch_id or new_batch_id(),
            trigger=RunTrigger.BACKLOG,
            actor_id=actor_id,
            started_at=self._clock(),
        )
        return self._execute(summary, lambda: self._plan_backlog(summary, batch_size, now), cancel_event)

    def _execute(
        self,
        summary: RunSummary,
        plan: Callable[[], list[Unit]],
        cancel_event: Optional[threading.Event],
    ) -> RunSummary:
        cancel = cancel_event or threading.Event()
        self._runs.insert(summary)
        logger.info(
            "Run %s started: trigger=%s employee=%s range=%s..%s",
            summary.batch_id,
            summary.trigger.value,
            summary.employee_id,
            summary.date_from,
            summary.date_to,
        )

        try:
            self._policies.refresh()
            self._resolver.clear_cache()
            units = plan()
            for _, days in units:
                summary.cover(days)
            self._run_units(units, summary, cancel)
        except RunCancelledError:
            summary.finish(RunStatus.CANCELLED, self._clock(), message="Cancelled by request")
        except Exception as e:
            summary.finish(RunStatus.FAILED, self._clock(), message=str(e))
            self._runs.update(summary)
            logger.exception("Run %s failed", summary.batch_id)
            raise
        else:
            summary.finish(RunStatus.COMPLETED, self._clock())

        self._runs.update(summary)
        logger.info(
            "Run %s %s: processed=%d months=%d skipped=%d errors=%d reasons=%s",
            summary.batch_id,
            summary.status.value,
            summary.processed,
            summary.months_assessed,
            summary.skipped,
            summary.errors,
            {reason.value: n for reason, n in summary.reasons.items()},
        )
        return summary

    def _run_units(self, units: Sequence[Unit], summary: RunSummary, cancel: threading.Event) -> None:
        if not units:
            return
        cancelled = False
        with ThreadPoolExecutor(max_workers=min(self._workers, len(units)), thread_name_prefix="reconcile") as pool:
            futures = [pool.submit(self._run_employee, employee, days, summary, cancel) for employee, days in units]
            for future in as_completed(futures):
                try:
                    future.result()
                except RunCancelledError:
                    cancelled = True
        if cancelled:
            raise RunCancelledError(summary.batch_id)

    def _run_employee(
        self,
        employee: Employee,
        days: Sequence[date],
        summary: RunSummary,
        cancel: threading.Event,
    ) -> None:
        if not days:
            return
        try:
            events_by_day = self._reconciliation.load_days(employee, days[0], days[-1])
        except Exception:
            logger.exception("Could not load punches for %s", employee.employee_code)
            summary.add_error(RunReason.UNIT_ERROR, len(days))
            return

        months: set[tuple[int, int]] = set()
        for day in days:
            if cancel.is_set():
                raise RunCancelledError(summary.batch_id)
            try:
                outcome = self._reconciliation.reconcile_day(
                    employee, day, events_by_day.get(day, ()), batch_id=summary.batch_id
                )
                months.add(self._penalties.period_of(day))
            except ConfigurationError as e:
                logger.warning("Skipping %s on %s: %s", employee.employee_code, day.isoformat(), e)
                summary.add_error(RunReason.CONFIGURATION_ERROR)
                self._defer(events_by_day.get(day, ()), self._clock() + self._retry_delay)
            except Exception:
                logger.exception("Failed to reconcile %s on %s", employee.employee_code, day.isoformat())
                summary.add_error(RunReason.UNIT_ERROR)
                self._defer(events_by_day.get(day, ()), self._clock() + self._retry_delay)
            else:
                summary.add_day(outcome.counts)

        for year, month in sorted(months):
            if cancel.is_set():
                raise RunCancelledError(summary.batch_id)
            try:
                self._penalties.process_month(employee.employee_id, year, month)
            except Exception:
                logger.exception("Failed to assess penalties for %s %d-%02d", employee.employee_code, year, month)
                summary.add_error(RunReason.PENALTY_ERROR)
            else:
                summary.add_month()

    def _range_employees(self, summary: RunSummary, date_from: date, date_to: date) -> list[Employee]:
        tz = self._resolver.tz
        codes = self._events.list_employee_codes_between(
            start=local_day_start(date_from, tz),
            end=local_day_start(date_to + timedelta(days=2), tz),
        )
        found: dict[int, Employee] = {}
        for code in codes:
            employee = self._employees.get_by_code(code)
            if employee is None:
                logger.warning("No employee for code %r in range %s..%s", code, date_from, date_to)
                summary.add_skipped(RunReason.EMPLOYEE_NOT_FOUND)
                continue
            found[employee.employee_id] = employee

        # Days that lost all their punches still need their stale record removed.
        for employee_id in self._reconciliation.employee_ids_with_records(date_from, date_to):
            if employee_id not in found:
                employee = self._employees.get_by_id(employee_id)
                if employee is not None:
                    found[employee_id] = employee
        return [found[k] for k in sorted(found)]

    def _plan_backlog(self, summary: RunSummary, batch_size: int, now: datetime) -> list[Unit]:
        by_code: dict[str, list[RawPunchEvent]] = {}
        for event in self._events.list_pending(limit=batch_size, now=now):
            if not event.employee_code.strip() or not event.vendor_event_id.strip():
                self._skip(event, RunReason.MALFORMED_EVENT, summary)
                continue
            by_code.setdefault(event.employee_code, []).append(event)

        units: list[Unit] = []
        for code in sorted(by_code):
            events = by_code[code]
            employee = self._employees.get_by_code(code)
            if employee is None:
                waiting: list[RawPunchEvent] = []
                for event in events:
                    first_seen = event.received_at or event.timestamp
                    if now - first_seen >= self._retry_window:
                        self._skip(event, RunReason.EMPLOYEE_NOT_FOUND, summary)
                    else:
                        waiting.append(event)
                        summary.add_skipped(RunReason.EMPLOYEE_PENDING)
                if waiting:
                    # Retry on a later sweep, and no later than the window's end.
                    give_up_at = min((e.received_at or e.timestamp) for e in waiting) + self._retry_window
                    self._defer(waiting, min(now + self._retry_delay, give_up_at))
                logger.warning("No employee for code %r (%d pending events)", code, len(events))
                continue
            if not employee.is_active:
                for event in events:
                    self._skip(event, RunReason.EMPLOYEE_INACTIVE, summary)
                continue

            days = sorted({self._resolver.work_date_for(employee, e.timestamp) for e in events})
            units.append((employee, days))
        return units

    def _defer(self, events: Sequence[RawPunchEvent], until: datetime) -> None:
        event_ids = [e.event_id for e in events if e.event_id is not None]
        if event_ids:
            self._events.defer(event_ids=event_ids, until=until)
            logger.info("Deferred %d events until %s", len(event_ids), until.isoformat())

    def _skip(self, event: RawPunchEvent, reason: RunReason, summary: RunSummary) -> None:
        if event.event_id is not None:
            self._events.mark_skipped(event_id=event.event_id, reason=reason)
        summary.add_skipped(reason)
        logger.info("Skipped event %s (%s): %s", event.vendor_event_id, event.employee_code, reason.value)
