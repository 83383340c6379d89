from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..policy.model import PolicyConfiguration
from .strategies.anomalous_duration_strategy import AnomalousDurationStrategy
from .strategies.base import HoursStrategy
from .strategies.complete_day_strategy import CompleteDayStrategy
from .strategies.missed_punch_strategy import MissedPunchOutStrategy


@dataclass
class HoursStrategyFactory:
    """Factory Pattern: choose the hours strategy from the punch pair."""

    def for_punches(
        self,
        *,
        check_in: datetime,
        check_out: Optional[datetime],
        policy: PolicyConfiguration,
    ) -> HoursStrategy:
        if check_out is None:
            return MissedPunchOutStrategy()

        seconds = (check_out - check_in).total_seconds()
        if seconds <= policy.minimum_duration_minutes * 60:
            return AnomalousDurationStrategy()
        if seconds > policy.maximum_duration_hours * 3600:
            return AnomalousDurationStrategy()
        return CompleteDayStrategy()
