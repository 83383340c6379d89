from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import quantize_hours
from ...policy.model import PolicyConfiguration
from .base import HoursDecision, HoursStrategy


class AnomalousDurationStrategy(HoursStrategy):
    """Implausible span (too short, over the maximum, or inverted): treat as a missed punch-out."""

    def decide(self, *, check_in: datetime, check_out: Optional[datetime], policy: PolicyConfiguration) -> HoursDecision:
        credited = quantize_hours(policy.standard_day_hours)
        measured = (check_out - check_in).total_seconds() / 3600
        return HoursDecision(
            check_out=None,
            total_hours=credited,
            missed_punch=True,
            note=(
                f"Anomalous duration {measured:.2f}h "
                f"(in {check_in.isoformat()}, out {check_out.isoformat()}), "
                f"treated as missed punch-out, credited {credited}h"
            ),
        )
