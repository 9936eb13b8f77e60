from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, Optional, Sequence

from ..core.enums import EntryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction, fetchall, fetchone, to_decimal
from .model import NewTimeSession, TimeSession
from .repository import LedgerRepository, LedgerTransaction

_COLUMNS = """
    id, user_id, task_id, related_task_id, work_date, entry_type,
    clock_in, clock_out, lunch_start, lunch_end, total_hours, created_at
"""


def _row_to_session(r: Dict[str, Any]) -> TimeSession:
    return TimeSession(
        id=int(r["id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        entry_type=EntryType(r["entry_type"]),
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        task_id=int(r["task_id"]) if r.get("task_id") is not None else None,
        related_task_id=int(r["related_task_id"]) if r.get("related_task_id") is not None else None,
        lunch_start=r.get("lunch_start"),
        lunch_end=r.get("lunch_end"),
        total_hours=to_decimal(r.get("total_hours")),
        created_at=r.get("created_at"),
    )


def _for_update(lock: bool) -> str:
    return " FOR UPDATE" if lock else ""


class MySQLLedgerTransaction(LedgerTransaction):
    """Ledger operations bound to one open cursor."""

    def __init__(self, cur):
        self._cur = cur

    def _one(self, sql: str, params: tuple) -> Optional[TimeSession]:
        self._cur.execute(sql, params)
        r = fetchone(self._cur)
        return _row_to_session(r) if r else None

    def _many(self, sql: str, params: tuple) -> Sequence[TimeSession]:
        self._cur.execute(sql, params)
        return [_row_to_session(r) for r in fetchall(self._cur)]

    def find_open_work(self, user_id: int, work_date: date, *, lock: bool = True) -> Optional[TimeSession]:
        return self._one(
            f"""
            SELECT {_COLUMNS}
            FROM time_entries
            WHERE user_id=%s AND work_date=%s AND entry_type='work' AND task_id IS NULL
              AND clock_in IS NOT NULL AND clock_out IS NULL
            ORDER BY id DESC
            LIMIT 1{_for_update(lock)}
            """,
            (user_id, work_date),
        )

    def find_latest_closed_work(self, user_id: int, work_date: date) -> Optional[TimeSession]:
        # Rows cleared by the rollover have no clock_out either; they still carry a total.
        return self._one(
            f"""
            SELECT {_COLUMNS}
            FROM time_entries
            WHERE user_id=%s AND work_date=%s AND entry_type='work' AND task_id IS NULL
              AND (clock_out IS NOT NULL OR clock_in IS NULL)
            ORDER BY id DESC
            LIMIT 1
            """,
            (user_id, work_date),
        )

    def find_open_break(self, user_id: int, work_date: date, *, lock: bool = True) -> Optional[TimeSession]:
        return self._one(
            f"""
            SELECT {_COLUMNS}
            FROM time_entries
            WHERE user_id=%s AND work_date=%s AND entry_type='break'
              AND clock_in IS NOT NULL AND clock_out IS NULL
            ORDER BY id DESC
            LIMIT 1{_for_update(lock)}
            """,
            (user_id, work_date),
        )

    def find_open_task(self, user_id: int, *, lock: bool = True) -> Optional[TimeSession]:
        return self._one(
            f"""
            SELECT {_COLUMNS}
            FROM time_entries
            WHERE user_id=%s AND task_id IS NOT NULL AND clock_out IS NULL
            ORDER BY id DESC
            LIMIT 1{_for_update(lock)}
            """,
            (user_id,),
        )

    def list_breaks_in_segment(
        self,
        user_id: int,
        work_date: date,
        *,
        start: datetime,
        end: Optional[datetime] = None,
    ) -> Sequence[TimeSession]:
        clauses = ["user_id=%s", "work_date=%s", "entry_type='break'", "clock_in >= %s"]
        params: list[object] = [user_id, work_date, start]
        if end is not None:
            clauses.append("clock_in <= %s")
            params.append(end)

        where = " AND ".join(clauses)
        return self._many(
            f"""
            SELECT {_COLUMNS}
            FROM time_entries
            WHERE {where}
            ORDER BY clock_in ASC, id ASC
            """,
            tuple(params),
        )

    def list_stale_open(self, user_id: int, *, before: date) -> Sequence[TimeSession]:
        return self._many(
            f"""
            SELECT {_COLUMNS}
            FROM time_entries
            WHERE user_id=%s AND work_date < %s
              AND clock_in IS NOT NULL AND clock_out IS NULL
            ORDER BY work_date ASC, id ASC
            FOR UPDATE
            """,
            (user_id, before),
        )

    def insert(self, new: NewTimeSession) -> TimeSession:
        self._cur.execute(
            """
            INSERT INTO time_entries(user_id, task_id, related_task_id, work_date, entry_type, clock_in, total_hours)
            VALUES(%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                new.user_id,
                new.task_id,
                new.related_task_id,
                new.work_date,
                new.entry_type.value,
                new.clock_in,
                new.total_hours,
            ),
        )
        return TimeSession(
            id=int(self._cur.lastrowid),
            user_id=new.user_id,
            work_date=new.work_date,
            entry_type=new.entry_type,
            clock_in=new.clock_in,
            task_id=new.task_id,
            related_task_id=new.related_task_id,
            total_hours=new.total_hours,
        )

    def update(self, session: TimeSession) -> None:
        self._cur.execute(
            """
            UPDATE time_entries
            SET clock_in=%s, clock_out=%s, lunch_start=%s, lunch_end=%s, total_hours=%s
            WHERE id=%s
            """,
            (
                session.clock_in,
                session.clock_out,
                session.lunch_start,
                session.lunch_end,
                session.total_hours,
                session.id,
            ),
        )

    def close_open_tasks(self, user_id: int, *, at: datetime) -> int:
        self._cur.execute(
            """
            UPDATE time_entries
            SET clock_out=%s
            WHERE user_id=%s AND task_id IS NOT NULL AND clock_out IS NULL
            """,
            (at, user_id),
        )
        return int(self._cur.rowcount or 0)


class MySQLLedgerRepository(LedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self) -> Iterator[LedgerTransaction]:
        with db_transaction(self._conn_factory) as (_, cur):
            yield MySQLLedgerTransaction(cur)

    def list_recent_for_user(self, user_id: int, limit: int) -> Sequence[TimeSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE user_id=%s
                ORDER BY COALESCE(clock_in, created_at) DESC, id DESC
                LIMIT %s
                """,
                (user_id, int(limit)),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def list_task_entries_for_day(self, user_id: int, work_date: date) -> Sequence[TimeSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE user_id=%s AND work_date=%s AND task_id IS NOT NULL
                ORDER BY id ASC
                """,
                (user_id, work_date),
            )
            return [_row_to_session(r) for r in fetchall(cur)]

    def sum_task_hours(
        self,
        task_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Decimal:
        clauses = ["task_id=%s", "clock_out IS NOT NULL"]
        params: list[object] = [int(task_id)]
        if start is not None:
            clauses.append("work_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("work_date <= %s")
            params.append(end)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COALESCE(SUM(total_hours), 0) AS hours FROM time_entries WHERE {where}",
                tuple(params),
            )
            r = fetchone(cur)
            return to_decimal(r["hours"] if r else None)

    def list_users_with_stale_sessions(self, *, before: date) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT user_id
                FROM time_entries
                WHERE work_date < %s AND clock_in IS NOT NULL AND clock_out IS NULL
                ORDER BY user_id
                """,
                (before,),
            )
            return [int(r["user_id"]) for r in fetchall(cur)]
