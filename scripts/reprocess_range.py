"""Reprocess attendance and penalties for a date range (optionally one employee)."""

from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.attendance_reconciler.attendance_reconciler.common.datetime_utils import parse_iso_date
from src.attendance_reconciler.attendance_reconciler.container import build_container_from_settings
from src.attendance_reconciler.attendance_reconciler.main import configure_logging, load_settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("date_from", type=parse_iso_date, help="YYYY-MM-DD")
    parser.add_argument("date_to", type=parse_iso_date, nargs="?", default=None, help="YYYY-MM-DD (default: date_from)")
    parser.add_argument("--employee-id", type=int, default=None)
    parser.add_argument("--actor-id", type=int, default=None)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    # Ctrl-C stops between employee-days instead of mid-write.
    cancel = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: cancel.set())

    container = build_container_from_settings(settings)
    summary = container.runner.reconcile_range(
        date_from=args.date_from,
        date_to=args.date_to or args.date_from,
        employee_id=args.employee_id,
        actor_id=args.actor_id,
        cancel_event=cancel,
    )

    print(json.dumps(summary.to_dict(), indent=2))
    return 1 if summary.errors else 0


if __name__ == "__main__":
    sys.exit(main())
