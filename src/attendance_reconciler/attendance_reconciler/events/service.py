from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..core.constants import LEGACY_ACCESS_CONTROL_ALIAS_MARKER
from ..core.enums import TerminalPurpose
from ..core.exceptions import ValidationError
from .model import Terminal
from .parser import parse_feed_event
from .repository import EventRepository, TerminalRepository

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    accepted: int = 0
    rejected: int = 0
    errors: list[str] = field(default_factory=list)


class EventFeedService:
    """Appends feed rows to the raw store; reconciliation happens later."""

    def __init__(self, events: EventRepository, terminals: TerminalRepository):
        self._events = events
        self._terminals = terminals

    def ingest(self, rows: Iterable[Mapping[str, Any]]) -> IngestResult:
        result = IngestResult()
        for row in rows:
            try:
                event = parse_feed_event(row)
            except ValidationError as e:
                result.rejected += 1
                result.errors.append(str(e))
                logger.warning("Rejected feed row: %s", e)
                continue

            if event.terminal_id:
                self._ensure_terminal(event.terminal_id, alias=str(row.get("terminal_alias") or event.terminal_id))
            self._events.append(event)
            result.accepted += 1
        return result

    def classify_terminal(self, *, terminal_id: str, alias: str, purpose: TerminalPurpose) -> Terminal:
        terminal = Terminal(terminal_id=terminal_id, alias=alias, purpose=purpose)
        self._terminals.register(terminal)
        return terminal

    def _ensure_terminal(self, terminal_id: str, *, alias: str) -> None:
        if self._terminals.get_by_id(terminal_id) is not None:
            return
        purpose = (
            TerminalPurpose.ACCESS_CONTROL
            if LEGACY_ACCESS_CONTROL_ALIAS_MARKER in alias.lower()
            else TerminalPurpose.ATTENDANCE
        )
        logger.info("Registering terminal %s (%s) as %s", terminal_id, alias, purpose.value)
        self._terminals.register(Terminal(terminal_id=terminal_id, alias=alias, purpose=purpose))
