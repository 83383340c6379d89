from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.enums import PenaltyType


@dataclass(frozen=True)
class LateTier:
    """A named late-arrival bracket with per-occurrence penalty hours (1st, 2nd, 3rd+)."""

    level: int
    name: str
    min_minutes: int
    max_minutes: Optional[int]
    occurrence_hours: tuple[Decimal, ...] = ()
    treatment: PenaltyType = PenaltyType.WAGE_DEDUCTION

    def contains(self, minutes_late: int) -> bool:
        if minutes_late < self.min_minutes:
            return False
        return self.max_minutes is None or minutes_late <= self.max_minutes

    def hours_for(self, occurrence: int) -> Decimal:
        if not self.occurrence_hours:
            return Decimal("0")
        index = min(max(occurrence, 1), len(self.occurrence_hours)) - 1
        return self.occurrence_hours[index]


DEFAULT_LATE_TIERS: tuple[LateTier, ...] = (
    LateTier(
        level=1,
        name="Late Arrival",
        min_minutes=31,
        max_minutes=60,
        occurrence_hours=(Decimal("0"), Decimal("0.5"), Decimal("1.0")),
    ),
    LateTier(
        level=2,
        name="Significant Delay",
        min_minutes=61,
        max_minutes=120,
        occurrence_hours=(Decimal("1.0"), Decimal("2.0"), Decimal("3.0")),
    ),
    LateTier(
        level=3,
        name="Extended Delay",
        min_minutes=121,
        max_minutes=None,
        treatment=PenaltyType.HALF_DAY_ABSENCE,
    ),
)


@dataclass(frozen=True)
class PolicyConfiguration:
    """One effective-dated version of the attendance and penalty policy."""

    version: int
    effective_from: date
    grace_period_minutes: int = 30
    late_tiers: tuple[LateTier, ...] = DEFAULT_LATE_TIERS
    early_checkout_minimum_minutes: int = 15
    early_checkout_penalty_percentage: Decimal = Decimal("30.00")
    missed_punchout_penalty_hours: Decimal = Decimal("0.5")
    standard_day_hours: Decimal = Decimal("7.5")
    minimum_duration_minutes: int = 6
    maximum_duration_hours: int = 24
    half_day_penalty_hours: Decimal = Decimal("4.0")
    half_day_deduction_amount: Optional[Decimal] = Decimal("500.00")
    minimum_daily_hours: Decimal = Decimal("6.0")
    monthly_reset_day: int = 1
    first_time_courtesy_enabled: bool = True
    default_shift_start: Optional[time] = time(9, 0)
    default_shift_end: Optional[time] = time(18, 0)

    def tier_for(self, minutes_late: int) -> Optional[LateTier]:
        for tier in sorted(self.late_tiers, key=lambda t: t.min_minutes):
            if tier.contains(minutes_late):
                return tier
        return None

    @property
    def has_default_shift(self) -> bool:
        return self.default_shift_start is not None and self.default_shift_end is not None
