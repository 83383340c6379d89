from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import FrozenSet, Optional

from ..common.datetime_utils import hours_between

ALL_WEEKDAYS: FrozenSet[int] = frozenset(range(7))


@dataclass(frozen=True)
class Shift:
    """Domain entity: a shift template. Weekdays follow `date.weekday()` (Monday=0)."""

    shift_id: int
    shift_name: str
    start_time: time
    end_time: time
    grace_period_minutes: int = 30
    days_of_week: FrozenSet[int] = ALL_WEEKDAYS

    @property
    def crosses_midnight(self) -> bool:
        return self.end_time <= self.start_time

    def runs_on(self, day: date) -> bool:
        return day.weekday() in self.days_of_week

    def window_for(self, work_date: date, tz: tzinfo) -> "ShiftWindow":
        start = datetime.combine(work_date, self.start_time, tzinfo=tz)
        end_date = work_date + timedelta(days=1) if self.crosses_midnight else work_date
        end = datetime.combine(end_date, self.end_time, tzinfo=tz)
        return ShiftWindow(shift=self, work_date=work_date, start=start, end=end)


@dataclass(frozen=True)
class ShiftAssignment:
    """Binds an employee to a shift for one date, or for a recurring weekday pattern."""

    assignment_id: int
    employee_id: int
    shift_id: int
    work_date: Optional[date] = None
    weekdays: FrozenSet[int] = field(default_factory=frozenset)
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None

    @property
    def is_dated(self) -> bool:
        return self.work_date is not None

    def applies_to(self, day: date) -> bool:
        if self.work_date is not None:
            return self.work_date == day
        if self.effective_from and day < self.effective_from:
            return False
        if self.effective_to and day > self.effective_to:
            return False
        return day.weekday() in self.weekdays


@dataclass(frozen=True)
class ShiftWindow:
    """A shift anchored to a work date, with the end already rolled past midnight when needed."""

    shift: Shift
    work_date: date
    start: datetime
    end: datetime

    @property
    def grace_period_minutes(self) -> int:
        return self.shift.grace_period_minutes

    @property
    def duration_hours(self) -> Decimal:
        return hours_between(self.start, self.end)
