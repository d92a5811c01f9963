"""Flask glue shared by the controllers: session actor, roles, JSON errors."""

from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.context import Actor, RequestMetadata
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, BlockedAttempt, NotFoundError, ValidationError


def error_body(code: str, message: str, details: Optional[dict[str, Any]] = None):
    return jsonify({"code": code, "message": message, "details": details})


def current_actor() -> Actor:
    return Actor(
        company_id=str(session["company_id"]),
        user_id=str(session["user_id"]),
        role=Role(session.get("role", Role.EMPLOYEE.value)),
    )


def request_metadata() -> RequestMetadata:
    return RequestMetadata(ip=request.remote_addr, user_agent=request.headers.get("User-Agent"))


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session or "company_id" not in session:
                return error_body("UNAUTHENTICATED", "Sign in to continue"), 401
            if session.get("role") not in allowed:
                return error_body("FORBIDDEN", "You do not have access to this resource"), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(BlockedAttempt)
    def blocked(exc: BlockedAttempt):
        return jsonify(exc.to_dict()), 403

    @app.errorhandler(ValidationError)
    def invalid(exc: ValidationError):
        return error_body("VALIDATION_ERROR", str(exc)), 400

    @app.errorhandler(NotFoundError)
    def not_found(exc: NotFoundError):
        return error_body("NOT_FOUND", str(exc)), 404

    @app.errorhandler(AuthorizationError)
    def forbidden(exc: AuthorizationError):
        return error_body("FORBIDDEN", str(exc)), 403
