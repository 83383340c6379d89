from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PunchSource, PunchState, RunReason, TerminalPurpose


@dataclass(frozen=True)
class RawPunchEvent:
    """Domain entity: one vendor or mobile punch, immutable once stored."""

    vendor_event_id: str
    employee_code: str
    timestamp: datetime
    punch_state: PunchState
    source: PunchSource = PunchSource.TERMINAL
    terminal_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    event_id: Optional[int] = None
    received_at: Optional[datetime] = None
    skipped_reason: Optional[RunReason] = None


@dataclass(frozen=True)
class Terminal:
    terminal_id: str
    alias: str
    purpose: TerminalPurpose = TerminalPurpose.ATTENDANCE

    @property
    def is_access_control(self) -> bool:
        return self.purpose == TerminalPurpose.ACCESS_CONTROL
