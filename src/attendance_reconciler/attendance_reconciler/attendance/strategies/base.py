from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ...policy.model import PolicyConfiguration


@dataclass(frozen=True)
class HoursDecision:
    check_out: Optional[datetime]
    total_hours: Decimal
    missed_punch: bool
    note: Optional[str] = None


class HoursStrategy(ABC):
    """Strategy Pattern: encapsulate how credited hours are decided for a day's punches."""

    @abstractmethod
    def decide(
        self,
        *,
        check_in: datetime,
        check_out: Optional[datetime],
        policy: PolicyConfiguration,
    ) -> HoursDecision:
        raise NotImplementedError
