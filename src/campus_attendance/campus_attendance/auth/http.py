from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Mapping

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..common.validators import require_mapping
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from .principal import Principal, principal_from_session

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PreconditionError, 409),
)


def current_principal() -> Principal:
    principal = g.get("principal")
    if principal is None:
        principal = principal_from_session(session)
        g.principal = principal
    return principal


def roles_required(*roles: Role):
    """Allow the view only for principals holding at least one of ``roles``.

    With no roles given, any authenticated principal is accepted.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if roles and not any(principal.has(r) for r in roles):
                raise AuthorizationError("You do not have permission to perform this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator


login_required = roles_required()


def json_body() -> Mapping[str, Any]:
    return require_mapping(request.get_json(silent=True))


def query_int(name: str):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    if not value.isdecimal():
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def error_payload(kind: str, message: str):
    return {"success": False, "error": kind, "message": message}


def status_for(err: DomainError) -> int:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(err, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify(error_payload(e.kind, str(e))), status_for(e)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify(error_payload(e.name.replace(" ", ""), e.description or e.name)), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error_payload("InternalError", "Internal server error")), 500
