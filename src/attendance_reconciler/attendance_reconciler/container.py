from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import ReconciliationService
from .common.datetime_utils import local_zone
from .core.constants import (
    DEFAULT_BACKLOG_RETRY_MINUTES,
    DEFAULT_EMPLOYEE_LOOKUP_RETRY_HOURS,
    DEFAULT_LOCAL_TIMEZONE,
    DEFAULT_OVERNIGHT_CHECKOUT_HOURS,
    DEFAULT_RECONCILE_WORKERS,
)
from .database.bootstrap import db_config_from_settings
from .database.connection import DatabaseConnection
from .dedup.mysql_reservation_repository import MySQLReservationRepository
from .dedup.service import Deduplicator
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .events.mysql_event_repository import MySQLEventRepository, MySQLTerminalRepository
from .events.service import EventFeedService
from .penalties.mysql_penalty_repository import MySQLPenaltyIncidentRepository, MySQLPenaltyTrackingRepository
from .penalties.service import PenaltyService
from .policy.mysql_policy_repository import MySQLPolicyRepository
from .policy.service import PolicyCatalog
from .reporting.service import AttendanceReportService
from .runs.dispatcher import RunDispatcher
from .runs.mysql_run_repository import MySQLRunRepository
from .runs.service import ReconciliationRunner
from .shifts.mysql_shift_repository import MySQLShiftAssignmentRepository, MySQLShiftRepository
from .shifts.resolver import ShiftResolver


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    events_repo: MySQLEventRepository
    terminals_repo: MySQLTerminalRepository
    employees_repo: MySQLEmployeeRepository
    attendance_repo: MySQLAttendanceRepository
    incidents_repo: MySQLPenaltyIncidentRepository
    tracking_repo: MySQLPenaltyTrackingRepository
    runs_repo: MySQLRunRepository

    policies: PolicyCatalog
    resolver: ShiftResolver
    event_feed_service: EventFeedService
    reconciliation_service: ReconciliationService
    penalty_service: PenaltyService
    report_service: AttendanceReportService
    runner: ReconciliationRunner
    dispatcher: RunDispatcher


def build_container(
    *,
    db_config: dict,
    local_timezone: str = DEFAULT_LOCAL_TIMEZONE,
    workers: int = DEFAULT_RECONCILE_WORKERS,
    employee_lookup_retry_hours: int = DEFAULT_EMPLOYEE_LOOKUP_RETRY_HOURS,
    backlog_retry_minutes: int = DEFAULT_BACKLOG_RETRY_MINUTES,
    overnight_checkout_hours: int = DEFAULT_OVERNIGHT_CHECKOUT_HOURS,
) -> Container:
    conn = DatabaseConnection.get_instance(db_config_from_settings(db_config))

    events_repo = MySQLEventRepository(conn)
    terminals_repo = MySQLTerminalRepository(conn)
    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    incidents_repo = MySQLPenaltyIncidentRepository(conn)
    tracking_repo = MySQLPenaltyTrackingRepository(conn)
    runs_repo = MySQLRunRepository(conn)

    policies = PolicyCatalog(MySQLPolicyRepository(conn))
    resolver = ShiftResolver(
        MySQLShiftRepository(conn),
        MySQLShiftAssignmentRepository(conn),
        policies,
        tz=local_zone(local_timezone),
        overnight_checkout_hours=overnight_checkout_hours,
    )
    event_feed_service = EventFeedService(events_repo, terminals_repo)
    reconciliation_service = ReconciliationService(
        events_repo,
        terminals_repo,
        attendance_repo,
        Deduplicator(MySQLReservationRepository(conn)),
        resolver,
        policies,
        conn,
    )
    penalty_service = PenaltyService(incidents_repo, tracking_repo, attendance_repo, employees_repo, policies, conn)
    report_service = AttendanceReportService(attendance_repo, incidents_repo, policies)
    runner = ReconciliationRunner(
        events=events_repo,
        employees=employees_repo,
        reconciliation=reconciliation_service,
        penalties=penalty_service,
        policies=policies,
        resolver=resolver,
        runs=runs_repo,
        workers=workers,
        employee_lookup_retry_hours=employee_lookup_retry_hours,
        backlog_retry_minutes=backlog_retry_minutes,
    )

    return Container(
        conn=conn,
        events_repo=events_repo,
        terminals_repo=terminals_repo,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        incidents_repo=incidents_repo,
        tracking_repo=tracking_repo,
        runs_repo=runs_repo,
        policies=policies,
        resolver=resolver,
        event_feed_service=event_feed_service,
        reconciliation_service=reconciliation_service,
        penalty_service=penalty_service,
        report_service=report_service,
        runner=runner,
        dispatcher=RunDispatcher(runner),
    )


def build_container_from_settings(settings) -> Container:
    return build_container(
        db_config=dict(getattr(settings, "DB_CONFIG")),
        local_timezone=getattr(settings, "LOCAL_TIMEZONE", DEFAULT_LOCAL_TIMEZONE),
        workers=int(getattr(settings, "RECONCILE_WORKERS", DEFAULT_RECONCILE_WORKERS)),
        employee_lookup_retry_hours=int(
            getattr(settings, "EMPLOYEE_LOOKUP_RETRY_HOURS", DEFAULT_EMPLOYEE_LOOKUP_RETRY_HOURS)
        ),
        backlog_retry_minutes=int(getattr(settings, "BACKLOG_RETRY_MINUTES", DEFAULT_BACKLOG_RETRY_MINUTES)),
        overnight_checkout_hours=int(getattr(settings, "OVERNIGHT_CHECKOUT_HOURS", DEFAULT_OVERNIGHT_CHECKOUT_HOURS)),
    )
