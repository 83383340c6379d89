from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConsistencyError,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if hasattr(value, "to_dict"):
            return value.to_dict()
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if not f.name.startswith("_")
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def ok(payload: Any = None, status: int = 200, **extra: Any):
    body = {"success": True}
    if payload is not None:
        body["data"] = to_jsonable(payload)
    body.update({k: to_jsonable(v) for k, v in extra.items()})
    return jsonify(body), status


def fail(message: str, status: int, **extra: Any):
    body = {"success": False, "message": message}
    body.update({k: to_jsonable(v) for k, v in extra.items()})
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Authentication required", 401)
            if session.get("role") not in allowed:
                return fail("Forbidden", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required(Role.ADMIN)
reviewer_required = roles_required(Role.ADMIN, Role.REVIEWER)


def json_errors(view):
    """Translate domain exceptions raised by a view into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except AuthorizationError as e:
            return fail(str(e), 403)
        except NotFoundError as e:
            return fail(str(e), 404)
        except ConsistencyError as e:
            return fail(str(e), 409, differences={k: list(v) for k, v in e.differences.items()})
        except ConfigurationError as e:
            return fail(str(e), 422)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return fail("Internal server error", 500)

    return wrapper


def current_actor() -> tuple[int, Role]:
    return int(session["user_id"]), Role(session.get("role"))


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def date_param(source: dict, name: str, default: Optional[date] = None) -> date:
    value = source.get(name)
    if not value:
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from None


def int_param(source: dict, name: str, default: Optional[int] = None, *, required: bool = False) -> Optional[int]:
    value = source.get(name)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{name} is required")
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer") from None
