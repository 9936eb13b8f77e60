"""In-memory stand-ins for the MySQL repositories and the reporting client."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from src.time_tracker.time_tracker.activity.model import ActivityEntry
from src.time_tracker.time_tracker.core.enums import EntryType, Role
from src.time_tracker.time_tracker.core.exceptions import TransientStorageError
from src.time_tracker.time_tracker.tasks.model import Task
from src.time_tracker.time_tracker.time_entries.model import NewTimeSession, TimeSession
from src.time_tracker.time_tracker.users.model import User


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeLedgerTx:
    def __init__(self, ledger: "FakeLedger"):
        self._ledger = ledger

    def _rows(self) -> List[TimeSession]:
        return sorted(self._ledger.rows.values(), key=lambda r: r.id)

    def find_open_work(self, user_id, work_date, *, lock=True):
        found = [r for r in self._rows() if r.user_id == user_id and r.work_date == work_date and r.is_work and r.is_open]
        return found[-1] if found else None

    def find_latest_closed_work(self, user_id, work_date):
        found = [
            r for r in self._rows() if r.user_id == user_id and r.work_date == work_date and r.is_work and not r.is_open
        ]
        return found[-1] if found else None

    def find_open_break(self, user_id, work_date, *, lock=True):
        found = [r for r in self._rows() if r.user_id == user_id and r.work_date == work_date and r.is_break and r.is_open]
        return found[-1] if found else None

    def find_open_task(self, user_id, *, lock=True):
        found = [r for r in self._rows() if r.user_id == user_id and r.is_task_timer and r.clock_out is None]
        return found[-1] if found else None

    def list_breaks_in_segment(self, user_id, work_date, *, start, end=None):
        found = [
            r
            for r in self._rows()
            if r.user_id == user_id
            and r.work_date == work_date
            and r.is_break
            and r.clock_in is not None
            and r.clock_in >= start
            and (end is None or r.clock_in <= end)
        ]
        return sorted(found, key=lambda r: (r.clock_in, r.id))

    def list_stale_open(self, user_id, *, before):
        return [r for r in self._rows() if r.user_id == user_id and r.work_date < before and r.is_open]

    def insert(self, new: NewTimeSession) -> TimeSession:
        # Mirrors the unique indexes on open rows.
        for r in self._rows():
            if r.user_id != new.user_id or r.clock_out is not None:
                continue
            if new.task_id is not None and r.is_task_timer:
                raise TransientStorageError("Duplicate entry for key 'uq_time_entries_open_task'")
            if (
                new.task_id is None
                and not r.is_task_timer
                and r.clock_in is not None
                and r.work_date == new.work_date
                and r.entry_type == new.entry_type
            ):
                raise TransientStorageError("Duplicate entry for key 'uq_time_entries_open_work'")

        session = TimeSession(
            id=self._ledger.next_id(),
            user_id=new.user_id,
            work_date=new.work_date,
            entry_type=new.entry_type,
            clock_in=new.clock_in,
            task_id=new.task_id,
            related_task_id=new.related_task_id,
            total_hours=new.total_hours,
            created_at=new.clock_in,
        )
        self._ledger.rows[session.id] = session
        return session

    def update(self, session: TimeSession) -> None:
        self._ledger.rows[session.id] = session

    def close_open_tasks(self, user_id, *, at):
        count = 0
        for r in self._rows():
            if r.user_id == user_id and r.is_task_timer and r.clock_out is None:
                self._ledger.rows[r.id] = replace(r, clock_out=at)
                count += 1
        return count


class FakeLedger:
    def __init__(self):
        self.rows: Dict[int, TimeSession] = {}
        self._next_id = 1
        self.transactions = 0
        self.fail_next = 0

    def next_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def add(self, **fields) -> TimeSession:
        """Seed a row directly (e.g. a session left open yesterday)."""
        fields.setdefault("entry_type", EntryType.WORK)
        session = TimeSession(id=self.next_id(), **fields)
        self.rows[session.id] = session
        return session

    def get(self, entry_id: int) -> TimeSession:
        return self.rows[entry_id]

    @contextmanager
    def transaction(self):
        self.transactions += 1
        if self.fail_next > 0:
            self.fail_next -= 1
            raise TransientStorageError("Deadlock found when trying to get lock")
        snapshot = dict(self.rows)
        try:
            yield FakeLedgerTx(self)
        except BaseException:
            self.rows = snapshot
            raise

    def list_recent_for_user(self, user_id, limit):
        rows = [r for r in self.rows.values() if r.user_id == user_id]
        rows.sort(key=lambda r: (r.clock_in or r.created_at or datetime.min, r.id), reverse=True)
        return rows[:limit]

    def list_task_entries_for_day(self, user_id, work_date):
        return sorted(
            (r for r in self.rows.values() if r.user_id == user_id and r.work_date == work_date and r.is_task_timer),
            key=lambda r: r.id,
        )

    def sum_task_hours(self, task_id, *, start: Optional[date] = None, end: Optional[date] = None) -> Decimal:
        total = Decimal("0.00")
        for r in self.rows.values():
            if r.task_id != task_id or r.clock_out is None:
                continue
            if start is not None and r.work_date < start:
                continue
            if end is not None and r.work_date > end:
                continue
            total += r.total_hours
        return total

    def list_users_with_stale_sessions(self, *, before):
        return sorted({r.user_id for r in self.rows.values() if r.work_date < before and r.is_open})


class FakeTasks:
    def __init__(self, *tasks: Task):
        self._tasks = {t.id: t for t in tasks}

    def get_by_id(self, task_id):
        return self._tasks.get(int(task_id))

    def exists(self, task_id):
        return int(task_id) in self._tasks


class FakeUsers:
    def __init__(self, *users: User):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id):
        return self._users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self._users.values() if u.email == email), None)


class FakeActivityRepo:
    def __init__(self, *, fail: bool = False):
        self.entries: List[ActivityEntry] = []
        self.fail = fail

    def add(self, entry: ActivityEntry) -> int:
        if self.fail:
            raise RuntimeError("activity table unavailable")
        self.entries.append(entry)
        return len(self.entries)

    def actions(self) -> List[str]:
        return [e.action for e in self.entries]


class RecordingNotifier:
    def __init__(self, *, fail: bool = False):
        self.report_rows = []
        self.task_hours = []
        self.comments = []
        self.fail = fail

    def notify_report_row(self, row):
        if self.fail:
            raise RuntimeError("reporting API down")
        self.report_rows.append(row)

    def update_task_hours(self, hours):
        if self.fail:
            raise RuntimeError("reporting API down")
        self.task_hours.append(hours)

    def add_task_comment(self, comment):
        if self.fail:
            raise RuntimeError("reporting API down")
        self.comments.append(comment)


def make_user(user_id: int = 1, *, role: Role = Role.EMPLOYEE, password_hash: str = "x") -> User:
    return User(
        user_id=user_id,
        name=f"User {user_id}",
        email=f"user{user_id}@example.com",
        password_hash=password_hash,
        role=role,
    )
