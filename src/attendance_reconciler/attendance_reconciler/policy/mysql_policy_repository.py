from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from ..core.enums import PenaltyType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_time, to_decimal
from .model import LateTier, PolicyConfiguration
from .repository import PolicyRepository


class MySQLPolicyRepository(PolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_versions(self) -> Sequence[PolicyConfiguration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT version, tier_level, name, min_minutes, max_minutes,
                       first_occurrence_hours, second_occurrence_hours, third_occurrence_hours, treatment
                FROM policy_late_tiers
                ORDER BY version, tier_level
                """
            )
            tiers: dict[int, list[LateTier]] = {}
            for t in fetchall(cur):
                hours = tuple(
                    Decimal(str(t[col]))
                    for col in ("first_occurrence_hours", "second_occurrence_hours", "third_occurrence_hours")
                    if t.get(col) is not None
                )
                tiers.setdefault(int(t["version"]), []).append(
                    LateTier(
                        level=int(t["tier_level"]),
                        name=t["name"],
                        min_minutes=int(t["min_minutes"]),
                        max_minutes=int(t["max_minutes"]) if t.get("max_minutes") is not None else None,
                        occurrence_hours=hours,
                        treatment=PenaltyType(t["treatment"]),
                    )
                )

            cur.execute(
                """
                SELECT version, effective_from, grace_period_minutes, early_checkout_minimum_minutes,
                       early_checkout_penalty_percentage, missed_punchout_penalty_hours, standard_day_hours,
                       minimum_duration_minutes, maximum_duration_hours, half_day_penalty_hours,
                       half_day_deduction_amount, minimum_daily_hours, monthly_reset_day,
                       first_time_courtesy_enabled, default_shift_start, default_shift_end
                FROM policy_configurations
                ORDER BY effective_from, version
                """
            )
            out = []
            for r in fetchall(cur):
                version = int(r["version"])
                kwargs = {}
                if version in tiers:
                    kwargs["late_tiers"] = tuple(tiers[version])
                out.append(
                    PolicyConfiguration(
                        version=version,
                        effective_from=r["effective_from"],
                        grace_period_minutes=int(r["grace_period_minutes"]),
                        early_checkout_minimum_minutes=int(r["early_checkout_minimum_minutes"]),
                        early_checkout_penalty_percentage=to_decimal(r["early_checkout_penalty_percentage"]),
                        missed_punchout_penalty_hours=to_decimal(r["missed_punchout_penalty_hours"]),
                        standard_day_hours=to_decimal(r["standard_day_hours"]),
                        minimum_duration_minutes=int(r["minimum_duration_minutes"]),
                        maximum_duration_hours=int(r["maximum_duration_hours"]),
                        half_day_penalty_hours=to_decimal(r["half_day_penalty_hours"]),
                        half_day_deduction_amount=to_decimal(r.get("half_day_deduction_amount")),
                        minimum_daily_hours=to_decimal(r["minimum_daily_hours"]),
                        monthly_reset_day=int(r["monthly_reset_day"]),
                        first_time_courtesy_enabled=bool(r["first_time_courtesy_enabled"]),
                        default_shift_start=normalize_mysql_time(r.get("default_shift_start")),
                        default_shift_end=normalize_mysql_time(r.get("default_shift_end")),
                        **kwargs,
                    )
                )
            return out

    def add_version(self, policy: PolicyConfiguration) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO policy_configurations
                    (version, effective_from, grace_period_minutes, early_checkout_minimum_minutes,
                     early_checkout_penalty_percentage, missed_punchout_penalty_hours, standard_day_hours,
                     minimum_duration_minutes, maximum_duration_hours, half_day_penalty_hours,
                     half_day_deduction_amount, minimum_daily_hours, monthly_reset_day,
                     first_time_courtesy_enabled, default_shift_start, default_shift_end)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    policy.version,
                    policy.effective_from,
                    policy.grace_period_minutes,
                    policy.early_checkout_minimum_minutes,
                    policy.early_checkout_penalty_percentage,
                    policy.missed_punchout_penalty_hours,
                    policy.standard_day_hours,
                    policy.minimum_duration_minutes,
                    policy.maximum_duration_hours,
                    policy.half_day_penalty_hours,
                    policy.half_day_deduction_amount,
                    policy.minimum_daily_hours,
                    policy.monthly_reset_day,
                    int(policy.first_time_courtesy_enabled),
                    policy.default_shift_start,
                    policy.default_shift_end,
                ),
            )
            for tier in policy.late_tiers:
                hours = list(tier.occurrence_hours) + [None] * (3 - len(tier.occurrence_hours))
                cur.execute(
                    """
                    INSERT INTO policy_late_tiers
                        (version, tier_level, name, min_minutes, max_minutes,
                         first_occurrence_hours, second_occurrence_hours, third_occurrence_hours, treatment)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        policy.version,
                        tier.level,
                        tier.name,
                        tier.min_minutes,
                        tier.max_minutes,
                        hours[0],
                        hours[1],
                        hours[2],
                        tier.treatment.value,
                    ),
                )
            return policy.version
