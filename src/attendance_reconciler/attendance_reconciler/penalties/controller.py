from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..attendance.controller import scoped_employee_id
from ..common.web import (
    current_actor,
    int_param,
    json_body,
    json_errors,
    login_required,
    ok,
    reviewer_required,
)
from ..container import Container
from ..core.exceptions import ValidationError


def _year_month(source) -> tuple[int, int]:
    today = date.today()
    return int_param(source, "year", today.year), int_param(source, "month", today.month)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/penalties", methods=["GET"], endpoint="api_penalties")
    @login_required
    @json_errors
    def penalties():
        employee_id = scoped_employee_id(int_param(request.args, "employee_id"))
        if employee_id is None:
            raise ValidationError("employee_id is required")
        year, month = _year_month(request.args)
        incidents = container.penalty_service.list_incidents(employee_id, year, month)
        return ok(incidents)

    @app.route("/api/penalties/<int:incident_id>/mitigate", methods=["POST"], endpoint="api_penalty_mitigate")
    @reviewer_required
    @json_errors
    def mitigate(incident_id: int):
        body = json_body()
        actor_id, role = current_actor()
        incident = container.penalty_service.mitigate(
            incident_id=incident_id,
            reason=str(body.get("reason") or ""),
            actor_id=actor_id,
            actor_role=role,
        )
        return ok(incident)

    @app.route("/api/penalties/tracking", methods=["GET"], endpoint="api_penalty_tracking")
    @login_required
    @json_errors
    def tracking():
        year, month = _year_month(request.args)
        employee_id = scoped_employee_id(int_param(request.args, "employee_id"))
        if employee_id is None:
            return ok(container.penalty_service.list_tracking(year, month))
        return ok(container.penalty_service.get_tracking(employee_id, year, month))

    @app.route("/api/penalties/tracking/verify", methods=["POST"], endpoint="api_penalty_tracking_verify")
    @reviewer_required
    @json_errors
    def verify():
        body = json_body()
        employee_id = int_param(body, "employee_id", required=True)
        year, month = _year_month(body)
        if body.get("rebuild"):
            return ok(container.penalty_service.rebuild_tracking(employee_id, year, month))
        return ok(container.penalty_service.verify_tracking(employee_id, year, month))
