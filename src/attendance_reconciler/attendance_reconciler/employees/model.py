from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: directory entry the engine resolves punches against."""

    employee_id: int
    employee_code: str
    full_name: str
    is_active: bool = True
    default_shift_id: Optional[int] = None
    hourly_rate: Optional[Decimal] = None
