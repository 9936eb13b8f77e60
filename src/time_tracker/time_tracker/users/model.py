from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; no DB access here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True
