from __future__ import annotations

import threading

from src.attendance_reconciler.attendance_reconciler.runs.dispatcher import RunDispatcher


class BlockingRunner:
    def __init__(self):
        self.started = threading.Event()
        self.calls = []

    def reconcile_range(self, *, batch_id, cancel_event, **kwargs):
        self.calls.append((batch_id, kwargs))
        self.started.set()
        cancel_event.wait(timeout=5)
        return cancel_event.is_set()

    def reconcile_backlog(self, *, batch_id, cancel_event, **kwargs):
        self.calls.append((batch_id, kwargs))
        return True


def test_submitted_run_can_be_cancelled():
    runner = BlockingRunner()
    dispatcher = RunDispatcher(runner, max_workers=1)

    batch_id = dispatcher.submit_range(date_from="2025-03-03", date_to="2025-03-04")
    assert runner.started.wait(timeout=5)
    assert dispatcher.is_active(batch_id)

    assert dispatcher.cancel(batch_id) is True
    dispatcher.shutdown(wait=True)

    assert not dispatcher.is_active(batch_id)
    assert runner.calls == [(batch_id, {"date_from": "2025-03-03", "date_to": "2025-03-04"})]


def test_cancel_unknown_batch():
    dispatcher = RunDispatcher(BlockingRunner())
    try:
        assert dispatcher.cancel("nope") is False
    finally:
        dispatcher.shutdown()


def test_backlog_submission_finishes():
    runner = BlockingRunner()
    dispatcher = RunDispatcher(runner)

    batch_id = dispatcher.submit_backlog(batch_size=10)
    dispatcher.shutdown(wait=True)

    assert runner.calls == [(batch_id, {"batch_size": 10})]
    assert not dispatcher.is_active(batch_id)
