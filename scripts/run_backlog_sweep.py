"""Scheduled backlog sweep: reconcile punches that no run has consumed yet.

Intended for cron; exits non-zero when the run recorded errors.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.attendance_reconciler.attendance_reconciler.container import build_container_from_settings
from src.attendance_reconciler.attendance_reconciler.core.constants import DEFAULT_BACKLOG_BATCH_SIZE
from src.attendance_reconciler.attendance_reconciler.main import configure_logging, load_settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--batch-size", type=int, default=None, help="max pending events to pick up")
    parser.add_argument("--actor-id", type=int, default=None)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    batch_size = args.batch_size or int(getattr(settings, "BACKLOG_BATCH_SIZE", DEFAULT_BACKLOG_BATCH_SIZE))
    container = build_container_from_settings(settings)
    summary = container.runner.reconcile_backlog(batch_size=batch_size, actor_id=args.actor_id)

    print(json.dumps(summary.to_dict(), indent=2))
    return 1 if summary.errors else 0


if __name__ == "__main__":
    sys.exit(main())
