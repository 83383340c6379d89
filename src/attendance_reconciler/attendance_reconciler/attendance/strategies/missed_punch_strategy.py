from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import quantize_hours
from ...policy.model import PolicyConfiguration
from .base import HoursDecision, HoursStrategy


class MissedPunchOutStrategy(HoursStrategy):
    """No check-out: credit the policy's standard day."""

    def decide(self, *, check_in: datetime, check_out: Optional[datetime], policy: PolicyConfiguration) -> HoursDecision:
        credited = quantize_hours(policy.standard_day_hours)
        return HoursDecision(
            check_out=None,
            total_hours=credited,
            missed_punch=True,
            note=f"Missed punch-out, credited {credited}h",
        )
