from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.guards import current_user_id, login_required
from ..core.constants import DEFAULT_SESSION_DAYS
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = request.form
        email = str(payload.get("email", ""))
        password = str(payload.get("password", ""))
        remember = payload.get("remember_me")

        # AuthenticationError/ValidationError are rendered by the shared error handlers.
        s_user = container.auth_service.authenticate(email, password)

        session.clear()
        session.permanent = bool(remember)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        logger.info("login", extra={"user_id": s_user.user_id})
        return jsonify({"user": s_user.to_dict()})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        s_user = container.auth_service.get_session_user(current_user_id())
        if not s_user:
            session.clear()
            return jsonify({"error": "unauthenticated", "message": "Please log in to continue"}), 401
        return jsonify({"user": s_user.to_dict()})
