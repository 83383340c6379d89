from __future__ import annotations

from ..core.enums import ReserveOutcome
from ..events.model import RawPunchEvent
from .model import KeyOwner, ReconciliationKey
from .repository import ReservationRepository


class Deduplicator:
    """Reserves canonical keys for an employee-day.

    Call inside the same transaction as the daily record write: a rollback
    releases the reservation, so a crash never loses the event.
    """

    def __init__(self, reservations: ReservationRepository):
        self._reservations = reservations

    def try_reserve(self, event: RawPunchEvent, *, owner: KeyOwner, batch_id: str) -> ReserveOutcome:
        key = ReconciliationKey.for_event(event)
        if self._reservations.insert_if_absent(key=key, owner=owner, batch_id=batch_id):
            return ReserveOutcome.ACCEPTED
        return ReserveOutcome.DUPLICATE

    def release(self, owner: KeyOwner) -> int:
        return self._reservations.release_owner(owner)
