from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import IncidentType, PenaltyType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_mysql_utc, to_decimal, to_mysql_utc
from .model import EmployeePenaltyTracking, PenaltyIncident
from .repository import PenaltyIncidentRepository, PenaltyTrackingRepository

_INCIDENT_COLUMNS = """
    incident_id, employee_id, incident_date, incident_type, incident_category, monthly_occurrence_number,
    penalty_type, penalty_hours, penalty_amount, tier_level, minutes_late, minutes_early,
    scheduled_time, actual_time, policy_version, courtesy_applied,
    mitigation_applied, mitigation_reason, mitigated_by, mitigated_at
"""


def _row_to_incident(r: dict) -> PenaltyIncident:
    return PenaltyIncident(
        incident_id=int(r["incident_id"]),
        employee_id=int(r["employee_id"]),
        incident_date=r["incident_date"],
        incident_type=IncidentType(r["incident_type"]),
        incident_category=r["incident_category"],
        monthly_occurrence_number=int(r["monthly_occurrence_number"]),
        penalty_type=PenaltyType(r["penalty_type"]),
        penalty_hours=to_decimal(r["penalty_hours"]),
        penalty_amount=to_decimal(r.get("penalty_amount")),
        tier_level=r.get("tier_level"),
        minutes_late=r.get("minutes_late"),
        minutes_early=r.get("minutes_early"),
        scheduled_time=from_mysql_utc(r.get("scheduled_time")),
        actual_time=from_mysql_utc(r.get("actual_time")),
        policy_version=r.get("policy_version"),
        courtesy_applied=bool(r.get("courtesy_applied")),
        mitigation_applied=bool(r.get("mitigation_applied")),
        mitigation_reason=r.get("mitigation_reason"),
        mitigated_by=r.get("mitigated_by"),
        mitigated_at=from_mysql_utc(r.get("mitigated_at")),
    )


class MySQLPenaltyIncidentRepository(PenaltyIncidentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, incident_id: int) -> Optional[PenaltyIncident]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INCIDENT_COLUMNS} FROM penalty_incidents WHERE incident_id=%s",
                (int(incident_id),),
            )
            r = fetchone(cur)
            return _row_to_incident(r) if r else None

    def list_between(self, employee_id: int, start: date, end: date) -> Sequence[PenaltyIncident]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_INCIDENT_COLUMNS}
                FROM penalty_incidents
                WHERE employee_id=%s AND incident_date BETWEEN %s AND %s
                ORDER BY incident_date, incident_id
                """,
                (int(employee_id), start, end),
            )
            return [_row_to_incident(r) for r in fetchall(cur)]

    def replace_between(
        self,
        employee_id: int,
        start: date,
        end: date,
        incidents: Sequence[PenaltyIncident],
    ) -> Sequence[PenaltyIncident]:
        saved: list[PenaltyIncident] = []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM penalty_incidents WHERE employee_id=%s AND incident_date BETWEEN %s AND %s",
                (int(employee_id), start, end),
            )
            for incident in incidents:
                cur.execute(
                    """
                    INSERT INTO penalty_incidents
                        (employee_id, incident_date, incident_type, incident_category, monthly_occurrence_number,
                         penalty_type, penalty_hours, penalty_amount, tier_level, minutes_late, minutes_early,
                         scheduled_time, actual_time, policy_version, courtesy_applied,
                         mitigation_applied, mitigation_reason, mitigated_by, mitigated_at, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, UTC_TIMESTAMP())
                    """,
                    (
                        incident.employee_id,
                        incident.incident_date,
                        incident.incident_type.value,
                        incident.incident_category,
                        incident.monthly_occurrence_number,
                        incident.penalty_type.value,
                        incident.penalty_hours,
                        incident.penalty_amount,
                        incident.tier_level,
                        incident.minutes_late,
                        incident.minutes_early,
                        to_mysql_utc(incident.scheduled_time),
                        to_mysql_utc(incident.actual_time),
                        incident.policy_version,
                        int(incident.courtesy_applied),
                        int(incident.mitigation_applied),
                        incident.mitigation_reason,
                        incident.mitigated_by,
                        to_mysql_utc(incident.mitigated_at),
                    ),
                )
                saved.append(replace(incident, incident_id=int(cur.lastrowid)))
        return saved

    def set_mitigation(self, incident_id: int, *, reason: str, actor_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE penalty_incidents
                SET mitigation_applied=1, mitigation_reason=%s, mitigated_by=%s, mitigated_at=%s
                WHERE incident_id=%s AND mitigation_applied=0
                """,
                (reason, int(actor_id), to_mysql_utc(at), int(incident_id)),
            )
            return cur.rowcount == 1


def _row_to_tracking(r: dict) -> EmployeePenaltyTracking:
    return EmployeePenaltyTracking(
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        month=int(r["month"]),
        late_arrival_tier1_count=int(r["late_arrival_tier1_count"]),
        late_arrival_tier2_count=int(r["late_arrival_tier2_count"]),
        late_arrival_tier3_count=int(r["late_arrival_tier3_count"]),
        early_checkout_count=int(r["early_checkout_count"]),
        missed_punchout_count=int(r["missed_punchout_count"]),
        total_penalty_hours=to_decimal(r["total_penalty_hours"]),
        first_time_courtesy_used=bool(r.get("first_time_courtesy_used")),
        last_calculated_at=from_mysql_utc(r.get("last_calculated_at")),
    )


class MySQLPenaltyTrackingRepository(PenaltyTrackingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int, year: int, month: int) -> Optional[EmployeePenaltyTracking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM employee_penalty_tracking
                WHERE employee_id=%s AND year=%s AND month=%s
                """,
                (int(employee_id), int(year), int(month)),
            )
            r = fetchone(cur)
            return _row_to_tracking(r) if r else None

    def save(self, tracking: EmployeePenaltyTracking) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_penalty_tracking
                    (employee_id, year, month, late_arrival_tier1_count, late_arrival_tier2_count,
                     late_arrival_tier3_count, early_checkout_count, missed_punchout_count,
                     total_penalty_hours, first_time_courtesy_used, last_calculated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    late_arrival_tier1_count=VALUES(late_arrival_tier1_count),
                    late_arrival_tier2_count=VALUES(late_arrival_tier2_count),
                    late_arrival_tier3_count=VALUES(late_arrival_tier3_count),
                    early_checkout_count=VALUES(early_checkout_count),
                    missed_punchout_count=VALUES(missed_punchout_count),
                    total_penalty_hours=VALUES(total_penalty_hours),
                    first_time_courtesy_used=VALUES(first_time_courtesy_used),
                    last_calculated_at=VALUES(last_calculated_at)
                """,
                (
                    tracking.employee_id,
                    tracking.year,
                    tracking.month,
                    tracking.late_arrival_tier1_count,
                    tracking.late_arrival_tier2_count,
                    tracking.late_arrival_tier3_count,
                    tracking.early_checkout_count,
                    tracking.missed_punchout_count,
                    tracking.total_penalty_hours,
                    int(tracking.first_time_courtesy_used),
                    to_mysql_utc(tracking.last_calculated_at),
                ),
            )

    def list_for_month(self, year: int, month: int) -> Sequence[EmployeePenaltyTracking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM employee_penalty_tracking
                WHERE year=%s AND month=%s
                ORDER BY employee_id
                """,
                (int(year), int(month)),
            )
            return [_row_to_tracking(r) for r in fetchall(cur)]
