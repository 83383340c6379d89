from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class PeriodSummary:
    """One employee's rolled-up attendance for a week or penalty month."""

    employee_id: int
    period_start: date
    period_end: date
    working_days: int
    credited_hours: Decimal
    penalty_hours: Decimal
    net_hours: Decimal
    overtime_hours: Decimal
    missed_punches: int
    on_time_days: int
    grace_days: int
    late_days: int
    punctuality_percentage: Decimal
    average_late_minutes: Decimal
    minimum_expected_hours: Decimal
    below_minimum_hours: bool

    def to_dict(self) -> dict:
        data = asdict(self)
        data["period_start"] = self.period_start.isoformat()
        data["period_end"] = self.period_end.isoformat()
        for key, value in data.items():
            if isinstance(value, Decimal):
                data[key] = str(value)
        return data
