from __future__ import annotations

from datetime import datetime
from typing import Callable, ContextManager, Protocol

Clock = Callable[[], datetime]


class Transactional(Protocol):
    """Anything that can open an atomic unit of work (DatabaseConnection in production)."""

    def atomic(self) -> ContextManager[None]:
        raise NotImplementedError
