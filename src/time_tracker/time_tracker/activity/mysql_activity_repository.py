from __future__ import annotations

import json

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import ActivityEntry
from .repository import ActivityRepository


class MySQLActivityRepository(ActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, entry: ActivityEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_activity_logs(user_id, action, description, metadata)
                VALUES(%s,%s,%s,%s)
                """,
                (
                    int(entry.user_id),
                    entry.action,
                    entry.description[:500],
                    json.dumps(entry.metadata, default=str) if entry.metadata else None,
                ),
            )
            return int(cur.lastrowid)
