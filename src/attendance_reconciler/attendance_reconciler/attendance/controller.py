from __future__ import annotations

from datetime import date, timedelta

from flask import Flask, request, session

from ..common.validators import require_date_range
from ..common.web import (
    admin_required,
    current_actor,
    date_param,
    int_param,
    json_body,
    json_errors,
    login_required,
    ok,
)
from ..container import Container
from ..core.enums import Role, TerminalPurpose
from ..core.exceptions import AuthorizationError, ValidationError


def scoped_employee_id(requested):
    """Staff may only read their own rows; reviewers and admins may read anyone's."""

    _, role = current_actor()
    if role == Role.STAFF:
        own = session.get("employee_id")
        if own is None or (requested is not None and int(requested) != int(own)):
            raise AuthorizationError("Staff may only view their own attendance")
        return int(own)
    return requested


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @login_required
    @json_errors
    def attendance():
        today = date.today()
        start = date_param(request.args, "start", default=today - timedelta(days=7))
        end = date_param(request.args, "end", default=today)
        require_date_range(start, end)
        employee_id = scoped_employee_id(int_param(request.args, "employee_id"))

        records = container.reconciliation_service.list_records(start=start, end=end, employee_id=employee_id)
        return ok(records)

    @app.route("/api/events", methods=["POST"], endpoint="api_events_ingest")
    @admin_required
    @json_errors
    def ingest_events():
        payload = request.get_json(silent=True)
        rows = payload.get("events") if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            raise ValidationError("Expected a list of events")
        result = container.event_feed_service.ingest(rows)
        return ok(result, status=201 if result.accepted else 200)

    @app.route("/api/admin/terminals/<terminal_id>", methods=["PUT"], endpoint="api_terminal_classify")
    @admin_required
    @json_errors
    def classify_terminal(terminal_id: str):
        body = json_body()
        try:
            purpose = TerminalPurpose(str(body.get("purpose") or ""))
        except ValueError:
            raise ValidationError("purpose must be 'attendance' or 'access_control'") from None
        terminal = container.event_feed_service.classify_terminal(
            terminal_id=terminal_id,
            alias=str(body.get("alias") or terminal_id),
            purpose=purpose,
        )
        return ok(terminal)
