from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ContextManager, Optional, Protocol, Sequence

from .model import NewTimeSession, TimeSession


class LedgerTransaction(Protocol):
    """Reads and writes that must share one storage transaction.

    Lookups of open rows lock them (``SELECT ... FOR UPDATE`` in MySQL) unless
    ``lock=False``; inserts that would create a second open row of the same
    track raise TransientStorageError.
    """

    def find_open_work(self, user_id: int, work_date: date, *, lock: bool = True) -> Optional[TimeSession]:
        raise NotImplementedError

    def find_latest_closed_work(self, user_id: int, work_date: date) -> Optional[TimeSession]:
        raise NotImplementedError

    def find_open_break(self, user_id: int, work_date: date, *, lock: bool = True) -> Optional[TimeSession]:
        raise NotImplementedError

    def find_open_task(self, user_id: int, *, lock: bool = True) -> Optional[TimeSession]:
        raise NotImplementedError

    def list_breaks_in_segment(
        self,
        user_id: int,
        work_date: date,
        *,
        start: datetime,
        end: Optional[datetime] = None,
    ) -> Sequence[TimeSession]:
        """Break rows of ``work_date`` whose clock_in falls in [start, end]."""

        raise NotImplementedError

    def list_stale_open(self, user_id: int, *, before: date) -> Sequence[TimeSession]:
        """Every open row (work, break, task) owned by a day earlier than ``before``."""

        raise NotImplementedError

    def insert(self, new: NewTimeSession) -> TimeSession:
        raise NotImplementedError

    def update(self, session: TimeSession) -> None:
        """Persist clock_in/clock_out, lunch fields and total_hours of an existing row."""

        raise NotImplementedError

    def close_open_tasks(self, user_id: int, *, at: datetime) -> int:
        """Set clock_out on every open task row of the user, leaving total_hours untouched."""

        raise NotImplementedError


class LedgerRepository(Protocol):
    def transaction(self) -> ContextManager[LedgerTransaction]:
        raise NotImplementedError

    def list_recent_for_user(self, user_id: int, limit: int) -> Sequence[TimeSession]:
        raise NotImplementedError

    def list_task_entries_for_day(self, user_id: int, work_date: date) -> Sequence[TimeSession]:
        raise NotImplementedError

    def sum_task_hours(
        self,
        task_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Decimal:
        raise NotImplementedError

    def list_users_with_stale_sessions(self, *, before: date) -> Sequence[int]:
        raise NotImplementedError
