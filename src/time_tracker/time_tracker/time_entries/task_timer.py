from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from ..activity.service import ActivityLogger
from ..common.datetime_utils import now_local
from ..common.transactions import run_atomic
from ..core.constants import DEFAULT_TRANSACTION_RETRIES
from ..core.enums import ActivityAction, EntryType
from ..core.exceptions import InvalidTask, NoRunningTask, NotClockedIn
from ..reporting.service import ReportingService
from ..tasks.repository import TaskRepository
from .closing import closed_with_raw_hours
from .model import NewTimeSession, TimeSession
from .repository import LedgerRepository, LedgerTransaction


class TaskTimerService:
    """One running task timer per user, independent of the work/break state.

    Starting a timer stops any other open timer of the user at the same
    instant without crediting it hours; only StopTask computes hours.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        tasks: TaskRepository,
        *,
        activity: ActivityLogger,
        reporting: ReportingService,
        clock: Callable[[], datetime] = now_local,
        requires_clock_in: bool = False,
        retries: int = DEFAULT_TRANSACTION_RETRIES,
    ):
        self._ledger = ledger
        self._tasks = tasks
        self._activity = activity
        self._reporting = reporting
        self._clock = clock
        self._requires_clock_in = bool(requires_clock_in)
        self._retries = int(retries)

    def start_task(self, user_id: int, task_id: Optional[int], *, now: Optional[datetime] = None) -> TimeSession:
        if task_id is None or not self._tasks.exists(task_id):
            raise InvalidTask()

        now = now or self._clock()
        today = now.date()

        def work(tx: LedgerTransaction) -> Tuple[TimeSession, int]:
            if self._requires_clock_in and not tx.find_open_work(user_id, today):
                raise NotClockedIn()
            preempted = tx.close_open_tasks(user_id, at=now)
            started = tx.insert(
                NewTimeSession(
                    user_id=user_id,
                    work_date=today,
                    entry_type=EntryType.WORK,
                    clock_in=now,
                    task_id=task_id,
                )
            )
            return started, preempted

        started, preempted = run_atomic(self._ledger, work, retries=self._retries)
        self._activity.log(
            user_id,
            ActivityAction.TASK_START,
            f"Started task #{task_id}",
            {"entry_id": started.id, "task_id": task_id, "stopped_timers": preempted},
        )
        return started

    def stop_task(self, user_id: int, *, now: Optional[datetime] = None) -> TimeSession:
        now = now or self._clock()

        def work(tx: LedgerTransaction) -> TimeSession:
            running = tx.find_open_task(user_id)
            if not running:
                raise NoRunningTask()
            closed = closed_with_raw_hours(running, now)
            tx.update(closed)
            return closed

        stopped = run_atomic(self._ledger, work, retries=self._retries)
        self._activity.log(
            user_id,
            ActivityAction.TASK_STOP,
            f"Stopped task #{stopped.task_id}",
            {"entry_id": stopped.id, "task_id": stopped.task_id, "hours": str(stopped.total_hours)},
        )
        self._reporting.task_stopped(stopped)
        return stopped

    def today_task_entries(self, user_id: int, *, now: Optional[datetime] = None) -> Sequence[TimeSession]:
        now = now or self._clock()
        return self._ledger.list_task_entries_for_day(user_id, now.date())
