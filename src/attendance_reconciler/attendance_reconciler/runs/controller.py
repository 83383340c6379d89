from __future__ import annotations

from flask import Flask, current_app, request

from ..common.validators import require_date_range, require_positive
from ..common.web import admin_required, current_actor, date_param, fail, int_param, json_body, json_errors, ok
from ..container import Container
from ..core.constants import DEFAULT_BACKLOG_BATCH_SIZE
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/reconcile", methods=["POST"], endpoint="api_reconcile_range")
    @admin_required
    @json_errors
    def reconcile_range():
        body = json_body()
        date_from = date_param(body, "date_from")
        date_to = date_param(body, "date_to", default=date_from)
        require_date_range(date_from, date_to)
        employee_id = int_param(body, "employee_id")
        if employee_id is not None and container.employees_repo.get_by_id(employee_id) is None:
            raise NotFoundError(f"Employee {employee_id} not found")

        actor_id, _ = current_actor()
        batch_id = container.dispatcher.submit_range(
            date_from=date_from,
            date_to=date_to,
            employee_id=employee_id,
            actor_id=actor_id,
        )
        return ok(status=202, batch_id=batch_id)

    @app.route("/api/admin/reconcile/backlog", methods=["POST"], endpoint="api_reconcile_backlog")
    @admin_required
    @json_errors
    def reconcile_backlog():
        body = json_body()
        default_size = int(current_app.config.get("BACKLOG_BATCH_SIZE", DEFAULT_BACKLOG_BATCH_SIZE))
        batch_size = require_positive(int_param(body, "batch_size", default_size), "batch_size")
        actor_id, _ = current_actor()
        batch_id = container.dispatcher.submit_backlog(batch_size=batch_size, actor_id=actor_id)
        return ok(status=202, batch_id=batch_id)

    @app.route("/api/admin/runs", methods=["GET"], endpoint="api_runs")
    @admin_required
    @json_errors
    def runs():
        limit = int_param(request.args, "limit", 20)
        return ok([run.to_dict() for run in container.runs_repo.list_recent(limit=limit)])

    @app.route("/api/admin/runs/<batch_id>", methods=["GET"], endpoint="api_run_detail")
    @admin_required
    @json_errors
    def run_detail(batch_id: str):
        run = container.runs_repo.get(batch_id)
        if run is not None:
            return ok(run.to_dict())
        if container.dispatcher.is_active(batch_id):
            return ok({"batch_id": batch_id, "status": "queued"})
        raise NotFoundError(f"Run {batch_id} not found")

    @app.route("/api/admin/runs/<batch_id>/cancel", methods=["POST"], endpoint="api_run_cancel")
    @admin_required
    @json_errors
    def run_cancel(batch_id: str):
        if not container.dispatcher.cancel(batch_id):
            return fail(f"Run {batch_id} is not active", 409)
        return ok(status=202, batch_id=batch_id)
