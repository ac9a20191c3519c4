from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, session

from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import (
    AttendanceStateError,
    AuthorizationError,
    DimensionMismatch,
    DomainError,
    ExtractorNotReady,
    IdentityNotVerified,
    NotEnrolled,
    StorageUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (IdentityNotVerified, 403),
    (AuthorizationError, 403),
    (NotEnrolled, 404),
    (AttendanceStateError, 409),
    (DimensionMismatch, 400),
    (ValidationError, 400),
    (ExtractorNotReady, 503),
)


def current_actor() -> Actor:
    """Build the caller from the session set by the hosting auth layer."""

    role_s = session.get("role")
    try:
        role = Role(role_s)
    except ValueError:
        role = Role.EMPLOYEE
    return Actor(user_id=str(session["user_id"]), role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "unauthorized", "message": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def error_body(exc: Exception) -> dict:
    body = {"error": getattr(exc, "code", "error"), "message": str(exc)}
    if isinstance(exc, IdentityNotVerified):
        body["similarity"] = round(exc.similarity, 6)
        body["threshold"] = exc.threshold
    if isinstance(exc, DimensionMismatch):
        body["expected"] = exc.expected
        body["actual"] = exc.actual
    return body


def status_for(exc: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify(error_body(exc)), status_for(exc)

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(exc: StorageUnavailable):
        logger.error("Storage unavailable: %s", exc)
        body = error_body(exc)
        body["retryable"] = True
        return jsonify(body), 503
