from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import hours_between
from ...policy.model import PolicyConfiguration
from .base import HoursDecision, HoursStrategy


class CompleteDayStrategy(HoursStrategy):
    """Both punches present and plausible: credit the measured span."""

    def decide(self, *, check_in: datetime, check_out: Optional[datetime], policy: PolicyConfiguration) -> HoursDecision:
        return HoursDecision(check_out=check_out, total_hours=hours_between(check_in, check_out), missed_punch=False)
