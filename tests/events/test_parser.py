from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.attendance_reconciler.attendance_reconciler.core.enums import PunchSource, PunchState, TerminalPurpose
from src.attendance_reconciler.attendance_reconciler.core.exceptions import ValidationError
from src.attendance_reconciler.attendance_reconciler.events.parser import parse_feed_event, parse_punch_state
from tests.fakes import build_world


def test_vendor_row_uses_numeric_punch_codes():
    event = parse_feed_event(
        {
            "biotime_id": "88123",
            "emp_code": "E001",
            "punch_time": "2025-03-03T04:00:00Z",
            "punch_state": "0",
            "terminal_sn": "CJDE2100",
        }
    )

    assert event.vendor_event_id == "88123"
    assert event.employee_code == "E001"
    assert event.timestamp == datetime(2025, 3, 3, 4, 0, tzinfo=timezone.utc)
    assert event.punch_state == PunchState.IN
    assert event.terminal_id == "CJDE2100"
    assert event.source == PunchSource.TERMINAL


@pytest.mark.parametrize(
    "code, expected",
    [
        ("0", PunchState.IN),
        ("1", PunchState.OUT),
        ("out", PunchState.OUT),
        ("4", PunchState.OVERTIME),
        ("255", PunchState.UNKNOWN),
        (None, PunchState.UNKNOWN),
    ],
)
def test_punch_state_codes(code, expected):
    assert parse_punch_state(code) == expected


def test_mobile_row_keeps_geolocation():
    event = parse_feed_event(
        {
            "vendor_event_id": "m-1",
            "employee_code": "E001",
            "timestamp": "2025-03-03T04:00:00+05:00",
            "punch_state": "in",
            "source": "mobile_app",
            "lat": "24.86",
            "lon": "67.01",
            "accuracy": 12,
        }
    )

    assert event.source == PunchSource.MOBILE_APP
    assert event.timestamp == datetime(2025, 3, 2, 23, 0, tzinfo=timezone.utc)
    assert event.latitude == pytest.approx(24.86)
    assert event.longitude == pytest.approx(67.01)
    assert event.accuracy == 12.0


def test_naive_timestamp_is_utc():
    event = parse_feed_event({"vendor_event_id": "1", "employee_code": "E001", "timestamp": "2025-03-03 09:00:00"})
    assert event.timestamp.tzinfo == timezone.utc
    assert event.timestamp.hour == 9


@pytest.mark.parametrize(
    "row",
    [
        {"employee_code": "E001", "timestamp": "2025-03-03T09:00:00Z"},
        {"vendor_event_id": "1", "timestamp": "2025-03-03T09:00:00Z"},
        {"vendor_event_id": "1", "employee_code": "E001"},
        {"vendor_event_id": "1", "employee_code": "E001", "timestamp": "yesterday"},
        {"vendor_event_id": "1", "employee_code": "E001", "timestamp": "2025-03-03T09:00:00Z", "lat": "north"},
    ],
)
def test_malformed_rows_are_rejected(row):
    with pytest.raises(ValidationError):
        parse_feed_event(row)


def test_ingest_counts_rejections_and_registers_terminals():
    world = build_world()

    result = world.feed.ingest(
        [
            {
                "vendor_event_id": "1",
                "employee_code": "E001",
                "timestamp": "2025-03-03T09:00:00Z",
                "punch_state": "0",
                "terminal_id": "T-DOOR",
                "terminal_alias": "Server Room Lock",
            },
            {
                "vendor_event_id": "2",
                "employee_code": "E001",
                "timestamp": "2025-03-03T17:00:00Z",
                "punch_state": "1",
                "terminal_id": "T-HALL",
            },
            {"employee_code": "E001"},
        ]
    )

    assert result.accepted == 2
    assert result.rejected == 1
    assert len(world.events.events) == 2
    assert world.terminals.get_by_id("T-DOOR").purpose == TerminalPurpose.ACCESS_CONTROL
    assert world.terminals.get_by_id("T-HALL").purpose == TerminalPurpose.ATTENDANCE


def test_explicit_classification_overrides_alias_seed():
    world = build_world()
    world.feed.ingest(
        [
            {
                "vendor_event_id": "1",
                "employee_code": "E001",
                "timestamp": "2025-03-03T09:00:00Z",
                "terminal_id": "T-1",
                "terminal_alias": "Block B",
            }
        ]
    )

    world.feed.classify_terminal(terminal_id="T-1", alias="Block B turnstile", purpose=TerminalPurpose.ACCESS_CONTROL)

    assert world.terminals.get_by_id("T-1").is_access_control
