from __future__ import annotations

from typing import Protocol

from .model import KeyOwner, ReconciliationKey


class ReservationRepository(Protocol):
    def insert_if_absent(self, *, key: ReconciliationKey, owner: KeyOwner, batch_id: str) -> bool:
        """Insert the key under a unique constraint; False when it already exists."""

        raise NotImplementedError

    def release_owner(self, owner: KeyOwner) -> int:
        """Drop every key consumed by one employee-day (used before recomputing it)."""

        raise NotImplementedError
