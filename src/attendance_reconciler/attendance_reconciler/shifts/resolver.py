from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Sequence

from ..core.constants import DEFAULT_OVERNIGHT_CHECKOUT_HOURS
from ..core.exceptions import ConfigurationError
from ..employees.model import Employee
from ..policy.service import PolicyCatalog
from .model import Shift, ShiftAssignment, ShiftWindow
from .repository import ShiftAssignmentRepository, ShiftRepository

POLICY_SHIFT_ID = 0


class ShiftResolver:
    """Resolves the shift window that applies to an employee on a work date.

    Order: dated assignment, recurring assignment, the employee's standing shift
    (on its days of week), then the fallback shift of the effective policy.
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        assignments: ShiftAssignmentRepository,
        policies: PolicyCatalog,
        *,
        tz: tzinfo,
        overnight_checkout_hours: int = DEFAULT_OVERNIGHT_CHECKOUT_HOURS,
    ):
        self._shifts = shifts
        self._assignments = assignments
        self._policies = policies
        self._tz = tz
        self._overnight = timedelta(hours=int(overnight_checkout_hours))
        self._lock = threading.Lock()
        self._assignment_cache: dict[int, Sequence[ShiftAssignment]] = {}
        self._shift_cache: dict[int, Optional[Shift]] = {}

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def clear_cache(self) -> None:
        with self._lock:
            self._assignment_cache.clear()
            self._shift_cache.clear()

    def resolve(self, employee: Employee, work_date: date) -> ShiftWindow:
        return self.resolve_shift(employee, work_date).window_for(work_date, self._tz)

    def resolve_shift(self, employee: Employee, work_date: date) -> Shift:
        assignments = self._assignments_for(employee.employee_id)

        dated = [a for a in assignments if a.is_dated and a.applies_to(work_date)]
        for assignment in sorted(dated, key=lambda a: a.assignment_id, reverse=True):
            shift = self._shift(assignment.shift_id)
            if shift:
                return shift

        recurring = [a for a in assignments if not a.is_dated and a.applies_to(work_date)]
        recurring.sort(key=lambda a: (a.effective_from or date.min, a.assignment_id), reverse=True)
        for assignment in recurring:
            shift = self._shift(assignment.shift_id)
            if shift:
                return shift

        if employee.default_shift_id:
            shift = self._shift(employee.default_shift_id)
            if shift and shift.runs_on(work_date):
                return shift

        policy = self._policies.effective_on(work_date)
        if not policy.has_default_shift:
            raise ConfigurationError(
                f"No shift for employee {employee.employee_code} on {work_date.isoformat()} "
                f"and policy v{policy.version} has no fallback shift"
            )
        return Shift(
            shift_id=POLICY_SHIFT_ID,
            shift_name="Policy default",
            start_time=policy.default_shift_start,
            end_time=policy.default_shift_end,
            grace_period_minutes=policy.grace_period_minutes,
        )

    def work_date_for(self, employee: Employee, instant: datetime) -> date:
        """Local work date of a punch; early-morning punches after an overnight shift roll back a day."""

        local_day = instant.astimezone(self._tz).date()
        previous = local_day - timedelta(days=1)
        try:
            window = self.resolve(employee, previous)
        except ConfigurationError:
            return local_day
        if window.shift.crosses_midnight and instant < window.end + self._overnight:
            return previous
        return local_day

    def _assignments_for(self, employee_id: int) -> Sequence[ShiftAssignment]:
        with self._lock:
            cached = self._assignment_cache.get(employee_id)
        if cached is None:
            cached = tuple(self._assignments.list_for_employee(employee_id))
            with self._lock:
                self._assignment_cache[employee_id] = cached
        return cached

    def _shift(self, shift_id: int) -> Optional[Shift]:
        with self._lock:
            if shift_id in self._shift_cache:
                return self._shift_cache[shift_id]
        shift = self._shifts.get_by_id(shift_id)
        with self._lock:
            self._shift_cache[shift_id] = shift
        return shift
