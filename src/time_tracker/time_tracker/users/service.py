from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError
from .repository import UserRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "name": self.name, "email": self.email, "role": self.role.value}


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        email = require_non_empty(email, "email").lower()
        require_non_empty(password, "password")

        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)

    def get_session_user(self, user_id: int) -> SessionUser | None:
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            return None
        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)
