from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import RunSummary


class RunRepository(Protocol):
    def insert(self, run: RunSummary) -> None:
        raise NotImplementedError

    def update(self, run: RunSummary) -> None:
        raise NotImplementedError

    def get(self, batch_id: str) -> Optional[RunSummary]:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 20) -> Sequence[RunSummary]:
        raise NotImplementedError
