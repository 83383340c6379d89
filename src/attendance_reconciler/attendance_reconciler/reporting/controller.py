from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..attendance.controller import scoped_employee_id
from ..common.web import date_param, int_param, json_errors, login_required, ok, reviewer_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    def _employee_id() -> int:
        employee_id = scoped_employee_id(int_param(request.args, "employee_id"))
        if employee_id is None:
            raise ValidationError("employee_id is required")
        return employee_id

    @app.route("/api/reports/monthly", methods=["GET"], endpoint="api_report_monthly")
    @login_required
    @json_errors
    def monthly():
        today = date.today()
        summary = container.report_service.monthly(
            employee_id=_employee_id(),
            year=int_param(request.args, "year", today.year),
            month=int_param(request.args, "month", today.month),
        )
        return ok(summary)

    @app.route("/api/reports/weekly", methods=["GET"], endpoint="api_report_weekly")
    @login_required
    @json_errors
    def weekly():
        day = date_param(request.args, "date", default=date.today())
        return ok(container.report_service.weekly(employee_id=_employee_id(), day=day))

    @app.route("/api/reports/summary", methods=["GET"], endpoint="api_report_summary")
    @reviewer_required
    @json_errors
    def summary():
        start = date_param(request.args, "start")
        end = date_param(request.args, "end")
        return ok(container.report_service.summarize_all(start=start, end=end))
