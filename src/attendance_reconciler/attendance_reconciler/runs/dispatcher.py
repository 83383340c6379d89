from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from .model import new_batch_id
from .service import ReconciliationRunner

logger = logging.getLogger(__name__)


class RunDispatcher:
    """Runs reconciliations off the request thread and keeps their cancel handles."""

    def __init__(self, runner: ReconciliationRunner, *, max_workers: int = 2):
        self._runner = runner
        self._pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="run-dispatch")
        self._lock = threading.Lock()
        self._active: dict[str, threading.Event] = {}

    def submit_range(self, **kwargs: Any) -> str:
        return self._submit(self._runner.reconcile_range, **kwargs)

    def submit_backlog(self, **kwargs: Any) -> str:
        return self._submit(self._runner.reconcile_backlog, **kwargs)

    def cancel(self, batch_id: str) -> bool:
        with self._lock:
            event = self._active.get(batch_id)
        if event is None:
            return False
        event.set()
        logger.info("Cancellation requested for run %s", batch_id)
        return True

    def is_active(self, batch_id: str) -> bool:
        with self._lock:
            return batch_id in self._active

    def shutdown(self, *, wait: bool = True) -> None:
        with self._lock:
            for event in self._active.values():
                event.set()
        self._pool.shutdown(wait=wait)

    def _submit(self, fn, **kwargs: Any) -> str:
        batch_id = new_batch_id()
        cancel = threading.Event()
        with self._lock:
            self._active[batch_id] = cancel
        future = self._pool.submit(fn, batch_id=batch_id, cancel_event=cancel, **kwargs)
        future.add_done_callback(lambda f: self._done(batch_id, f))
        return batch_id

    def _done(self, batch_id: str, future: Future) -> None:
        with self._lock:
            self._active.pop(batch_id, None)
        error = future.exception()
        if error is not None:
            logger.error("Run %s ended with %s: %s", batch_id, type(error).__name__, error)
