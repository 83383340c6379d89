from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles supplied by the external auth layer."""

    ADMIN = "admin"
    REVIEWER = "reviewer"
    STAFF = "staff"


class PunchState(str, Enum):
    IN = "in"
    OUT = "out"
    OVERTIME = "overtime"
    UNKNOWN = "unknown"


class PunchSource(str, Enum):
    TERMINAL = "terminal"
    MOBILE_APP = "mobile_app"


class TerminalPurpose(str, Enum):
    """Explicit device classification; access-control devices never set punches."""

    ATTENDANCE = "attendance"
    ACCESS_CONTROL = "access_control"


class ReserveOutcome(str, Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


class ArrivalStatus(str, Enum):
    EARLY = "early"
    ON_TIME = "on_time"
    GRACE = "grace"
    LATE = "late"


class DepartureStatus(str, Enum):
    EARLY = "early"
    ON_TIME = "on_time"
    LATE = "late"
    INCOMPLETE = "incomplete"


class AttendanceStatus(str, Enum):
    """Day status stored on the daily attendance record."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    AUTO_PUNCHOUT = "auto_punchout"
    ADMIN_TERMINATED = "admin_terminated"


class IncidentType(str, Enum):
    LATE_ARRIVAL = "late_arrival"
    EARLY_CHECKOUT = "early_checkout"
    MISSED_PUNCHOUT = "missed_punchout"


class PenaltyType(str, Enum):
    VERBAL_WARNING = "verbal_warning"
    WAGE_DEDUCTION = "wage_deduction"
    HALF_DAY_ABSENCE = "half_day_absence"


class RunTrigger(str, Enum):
    RANGE = "range"
    BACKLOG = "backlog"


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RunReason(str, Enum):
    """Reasons counted in a run summary."""

    DUPLICATE = "duplicate"
    ACCESS_CONTROL = "access_control"
    EMPLOYEE_NOT_FOUND = "employee_not_found"
    EMPLOYEE_PENDING = "employee_pending"
    EMPLOYEE_INACTIVE = "employee_inactive"
    MALFORMED_EVENT = "malformed_event"
    ORPHANED_PUNCHOUT = "orphaned_punchout"
    CONFIGURATION_ERROR = "configuration_error"
    UNIT_ERROR = "unit_error"
    PENALTY_ERROR = "penalty_error"
