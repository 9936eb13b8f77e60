from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository


def _row_to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, name, email, password_hash, role, is_active
                FROM users
                WHERE user_id=%s
                """,
                (user_id,),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, name, email, password_hash, role, is_active
                FROM users
                WHERE email=%s
                """,
                (email,),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None
