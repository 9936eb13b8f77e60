from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..core.enums import Role


def current_user_id() -> int:
    return int(session["user_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "unauthenticated", "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def role_required(*roles: Role):
    """Allow only the given roles (admin is not implied)."""

    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "unauthenticated", "message": "Please log in to continue"}), 401
            if session.get("role") not in allowed:
                return jsonify({"error": "forbidden", "message": "Unauthorized"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator
