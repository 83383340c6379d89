from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from src.attendance_reconciler.attendance_reconciler.database.mysql_base import (
    from_mysql_utc,
    normalize_mysql_time,
    to_mysql_utc,
)


@pytest.mark.parametrize(
    "raw",
    [time(22, 0), timedelta(hours=22), timedelta(days=1, hours=22), "22:00:00", "22:00"],
)
def test_time_column_shapes(raw):
    assert normalize_mysql_time(raw) == time(22, 0)


def test_datetimes_are_stored_as_naive_utc():
    local = datetime(2025, 3, 3, 14, 0, tzinfo=timezone(timedelta(hours=5)))

    stored = to_mysql_utc(local)

    assert stored == datetime(2025, 3, 3, 9, 0)
    assert from_mysql_utc(stored) == datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)
