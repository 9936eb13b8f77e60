from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ..activity.service import ActivityLogger
from ..common.datetime_utils import now_local
from ..common.transactions import run_atomic
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TRANSACTION_RETRIES, MAX_HISTORY_LIMIT
from ..core.enums import ActivityAction, EntryType, ReportEvent
from ..core.exceptions import (
    AlreadyOnBreak,
    AlreadyOpen,
    LunchAlreadyEnded,
    NoBreakOpen,
    NoLunchOpen,
    NotClockedIn,
    OnLunch,
)
from ..reporting.service import ReportingService
from .closing import closed_with_raw_hours, closed_work_segment
from .model import NewTimeSession, TimeSession, WorkSessionView
from .repository import LedgerRepository, LedgerTransaction


@dataclass(frozen=True)
class ClockOutResult:
    session: TimeSession
    closed_break: Optional[TimeSession] = None


class TimeEntryService:
    """Use cases: the per-user, per-day work/break/lunch state machine.

    States: not clocked in -> working <-> on break / on lunch -> not clocked in.
    Every command is one ledger transaction; the activity row and reporting
    events are emitted only after it commits.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        *,
        activity: ActivityLogger,
        reporting: ReportingService,
        clock: Callable[[], datetime] = now_local,
        retries: int = DEFAULT_TRANSACTION_RETRIES,
    ):
        self._ledger = ledger
        self._activity = activity
        self._reporting = reporting
        self._clock = clock
        self._retries = int(retries)

    def _atomic(self, work: Callable[[LedgerTransaction], object]):
        return run_atomic(self._ledger, work, retries=self._retries)

    @staticmethod
    def _require_open_work(tx: LedgerTransaction, user_id: int, now: datetime) -> TimeSession:
        entry = tx.find_open_work(user_id, now.date())
        if not entry:
            raise NotClockedIn()
        return entry

    def clock_in(self, user_id: int, *, task_id: Optional[int] = None, now: Optional[datetime] = None) -> TimeSession:
        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> TimeSession:
            if tx.find_open_work(user_id, today):
                raise AlreadyOpen()
            previous = tx.find_latest_closed_work(user_id, today)
            carried = previous.total_hours if previous else Decimal("0.00")
            return tx.insert(
                NewTimeSession(
                    user_id=user_id,
                    work_date=today,
                    entry_type=EntryType.WORK,
                    clock_in=now,
                    related_task_id=task_id,
                    total_hours=carried,
                )
            )

        session = self._atomic(work)
        self._activity.log(
            user_id,
            ActivityAction.CLOCK_IN,
            f"Clocked in at {now:%H:%M:%S}",
            {"entry_id": session.id, "task_id": task_id, "carried_hours": str(session.total_hours)},
        )
        return session

    def clock_out(self, user_id: int, *, now: Optional[datetime] = None) -> ClockOutResult:
        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> ClockOutResult:
            entry = self._require_open_work(tx, user_id, now)

            auto_break = None
            open_break = tx.find_open_break(user_id, today)
            if open_break:
                auto_break = closed_with_raw_hours(open_break, now)
                tx.update(auto_break)

            closed = closed_work_segment(tx, entry, now)
            tx.update(closed)
            return ClockOutResult(session=closed, closed_break=auto_break)

        result = self._atomic(work)
        closed = result.session
        self._activity.log(
            user_id,
            ActivityAction.CLOCK_OUT,
            f"Clocked out at {now:%H:%M:%S}",
            {"entry_id": closed.id, "total_hours": str(closed.total_hours)},
        )
        if result.closed_break:
            self._reporting.session_closed(ReportEvent.BREAK, result.closed_break)
        self._reporting.session_closed(ReportEvent.TIME_OUT, closed)
        return result

    def start_break(self, user_id: int, *, now: Optional[datetime] = None) -> TimeSession:
        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> TimeSession:
            entry = self._require_open_work(tx, user_id, now)
            if tx.find_open_break(user_id, today):
                raise AlreadyOnBreak()
            if entry.lunch_open:
                raise OnLunch()
            return tx.insert(
                NewTimeSession(user_id=user_id, work_date=today, entry_type=EntryType.BREAK, clock_in=now)
            )

        brk = self._atomic(work)
        self._activity.log(user_id, ActivityAction.BREAK_START, f"Started break at {now:%H:%M:%S}", {"entry_id": brk.id})
        return brk

    def end_break(self, user_id: int, *, now: Optional[datetime] = None) -> TimeSession:
        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> TimeSession:
            open_break = tx.find_open_break(user_id, today)
            if not open_break:
                raise NoBreakOpen()
            closed = closed_with_raw_hours(open_break, now)
            tx.update(closed)
            return closed

        brk = self._atomic(work)
        self._activity.log(
            user_id,
            ActivityAction.BREAK_END,
            f"Ended break at {now:%H:%M:%S}",
            {"entry_id": brk.id, "break_hours": str(brk.total_hours)},
        )
        self._reporting.session_closed(ReportEvent.BREAK, brk)
        return brk

    def start_lunch(self, user_id: int, *, now: Optional[datetime] = None) -> TimeSession:
        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> TimeSession:
            entry = self._require_open_work(tx, user_id, now)
            if entry.lunch_open:
                raise OnLunch("You are already on lunch")
            if tx.find_open_break(user_id, today):
                raise AlreadyOnBreak("You are currently on break. End break before starting lunch.")
            if entry.lunch_end is not None:
                raise LunchAlreadyEnded("Lunch already taken for this session")
            updated = replace(entry, lunch_start=now)
            tx.update(updated)
            return updated

        entry = self._atomic(work)
        self._activity.log(user_id, ActivityAction.LUNCH_START, f"Started lunch at {now:%H:%M:%S}", {"entry_id": entry.id})
        return entry

    def end_lunch(self, user_id: int, *, now: Optional[datetime] = None) -> TimeSession:
        now = now or self._clock()

        def work(tx: LedgerTransaction) -> TimeSession:
            entry = tx.find_open_work(user_id, now.date())
            if not entry or entry.lunch_start is None:
                raise NoLunchOpen()
            if entry.lunch_end is not None:
                raise LunchAlreadyEnded()
            updated = replace(entry, lunch_end=now)
            tx.update(updated)
            return updated

        entry = self._atomic(work)
        self._activity.log(user_id, ActivityAction.LUNCH_END, f"Ended lunch at {now:%H:%M:%S}", {"entry_id": entry.id})
        return entry

    def current_entry(self, user_id: int, *, now: Optional[datetime] = None) -> Optional[WorkSessionView]:
        """Today's open work row with the latest break of its segment projected in."""

        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> Optional[WorkSessionView]:
            entry = tx.find_open_work(user_id, today, lock=False)
            if not entry:
                return None
            breaks = tx.list_breaks_in_segment(user_id, today, start=entry.clock_in)
            if not breaks:
                return WorkSessionView(session=entry)
            latest = breaks[-1]
            return WorkSessionView(session=entry, break_start=latest.clock_in, break_end=latest.clock_out)

        return self._atomic(work)

    def my_entries(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[TimeSession]:
        limit = DEFAULT_HISTORY_LIMIT if limit is None else min(max(int(limit), 1), MAX_HISTORY_LIMIT)
        return self._ledger.list_recent_for_user(user_id, limit)
