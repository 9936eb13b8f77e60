from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Task
from .repository import TaskRepository


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, external_task_id
                FROM tasks
                WHERE id=%s
                """,
                (int(task_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Task(
                id=int(r["id"]),
                name=r["name"],
                external_task_id=r.get("external_task_id"),
            )

    def exists(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM tasks WHERE id=%s", (int(task_id),))
            return fetchone(cur) is not None
