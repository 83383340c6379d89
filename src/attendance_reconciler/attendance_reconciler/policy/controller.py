from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, int_param, json_body, json_errors, ok
from ..container import Container
from ..core.enums import PenaltyType
from ..core.exceptions import ValidationError
from .model import LateTier, PolicyConfiguration

_DECIMAL_FIELDS = (
    "early_checkout_penalty_percentage",
    "missed_punchout_penalty_hours",
    "standard_day_hours",
    "half_day_penalty_hours",
    "half_day_deduction_amount",
    "minimum_daily_hours",
)
_INT_FIELDS = (
    "grace_period_minutes",
    "early_checkout_minimum_minutes",
    "minimum_duration_minutes",
    "maximum_duration_hours",
    "monthly_reset_day",
)


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{name} must be a number") from None


def _tier(body: dict) -> LateTier:
    try:
        return LateTier(
            level=int(body["level"]),
            name=str(body["name"]),
            min_minutes=int(body["min_minutes"]),
            max_minutes=int(body["max_minutes"]) if body.get("max_minutes") is not None else None,
            occurrence_hours=tuple(_decimal(h, "occurrence_hours") for h in body.get("occurrence_hours") or ()),
            treatment=PenaltyType(body.get("treatment") or PenaltyType.WAGE_DEDUCTION.value),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"invalid late tier: {e}") from None


def policy_from_body(body: dict) -> PolicyConfiguration:
    """Missing fields keep the defaults of PolicyConfiguration."""

    kwargs: dict[str, Any] = {
        "version": int_param(body, "version", required=True),
        "effective_from": parse_iso_date(str(body.get("effective_from") or "")) if body.get("effective_from") else None,
    }
    if kwargs["effective_from"] is None:
        raise ValidationError("effective_from is required")
    for name in _INT_FIELDS:
        if body.get(name) is not None:
            kwargs[name] = int_param(body, name)
    for name in _DECIMAL_FIELDS:
        if body.get(name) is not None:
            kwargs[name] = _decimal(body[name], name)
    if "first_time_courtesy_enabled" in body:
        kwargs["first_time_courtesy_enabled"] = bool(body["first_time_courtesy_enabled"])
    if body.get("late_tiers"):
        kwargs["late_tiers"] = tuple(_tier(t) for t in body["late_tiers"])
    return PolicyConfiguration(**kwargs)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/policies", methods=["GET"], endpoint="api_policies")
    @admin_required
    @json_errors
    def policies():
        container.policies.refresh()
        return ok(container.policies.versions())

    @app.route("/api/admin/policies", methods=["POST"], endpoint="api_policy_create")
    @admin_required
    @json_errors
    def create_policy():
        try:
            policy = policy_from_body(json_body())
        except ValueError as e:
            raise ValidationError(str(e)) from None
        container.policies.add_version(policy)
        return ok(policy, status=201)
