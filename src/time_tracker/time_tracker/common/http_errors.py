from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    PersistenceError,
    TimeTrackingError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Render every failure as ``{"error": code, "message": msg}``."""

    @app.errorhandler(TimeTrackingError)
    def handle_time_tracking_error(exc: TimeTrackingError):
        # Expected sequencing mistakes by the user, not failures.
        logger.info(
            "time_tracking_rejected",
            extra={"code": exc.code, "path": request.path, "method": request.method},
        )
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"error": "validation_error", "message": str(exc)}), 400

    @app.errorhandler(AuthenticationError)
    def handle_authentication_error(exc: AuthenticationError):
        return jsonify({"error": "invalid_credentials", "message": str(exc)}), 401

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(exc: AuthorizationError):
        return jsonify({"error": "forbidden", "message": str(exc) or "Unauthorized"}), 403

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return jsonify({"error": (exc.name or "http_error").lower().replace(" ", "_"), "message": exc.description}), exc.code

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        logger.error("persistence_error", exc_info=exc, extra={"path": request.path, "method": request.method})
        return jsonify({"error": "server_error", "message": "Internal server error"}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        logger.exception("unhandled_error", extra={"path": request.path, "method": request.method})
        return jsonify({"error": "server_error", "message": "Internal server error"}), 500
