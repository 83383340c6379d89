from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RunReason
from .model import RawPunchEvent, Terminal


class EventRepository(Protocol):
    """Append-only raw punch store; only skip and retry markers are written after insert."""

    def append(self, event: RawPunchEvent) -> int:
        raise NotImplementedError

    def list_pending(self, *, limit: int, now: datetime) -> Sequence[RawPunchEvent]:
        """Events with no consumed reconciliation key, no skip marker and not deferred past `now`, oldest first."""

        raise NotImplementedError

    def list_for_employee_between(
        self,
        *,
        employee_code: str,
        start: datetime,
        end: datetime,
    ) -> Sequence[RawPunchEvent]:
        """Events for one employee with start <= timestamp < end.

        Access-control skips are included so a reclassified terminal is re-evaluated.
        """

        raise NotImplementedError

    def list_employee_codes_between(self, *, start: datetime, end: datetime) -> Sequence[str]:
        raise NotImplementedError

    def mark_skipped(self, *, event_id: int, reason: RunReason) -> bool:
        raise NotImplementedError

    def clear_skip(self, *, event_id: int, reason: RunReason) -> bool:
        raise NotImplementedError

    def defer(self, *, event_ids: Sequence[int], until: datetime) -> int:
        """Hide events from `list_pending` until `until`."""

        raise NotImplementedError


class TerminalRepository(Protocol):
    def get_by_id(self, terminal_id: str) -> Optional[Terminal]:
        raise NotImplementedError

    def register(self, terminal: Terminal) -> None:
        raise NotImplementedError
