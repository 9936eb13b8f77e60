from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from ..activity.service import ActivityLogger
from ..common.datetime_utils import end_of_day, now_local
from ..common.transactions import run_atomic
from ..core.constants import DEFAULT_TRANSACTION_RETRIES
from ..core.enums import ActivityAction
from ..core.exceptions import PersistenceError
from .closing import closed_with_raw_hours, closed_work_segment
from .model import TimeSession
from .repository import LedgerRepository, LedgerTransaction

logger = logging.getLogger(__name__)


class RolloverSweeper:
    """Finalizes sessions left open past their own calendar day.

    Every stale session is closed at 23:59:59.999999 of its ``work_date``:
    breaks first (so the work segment sees their end), then work rows, then
    task timers. A finalized work row keeps its total but has clock_in,
    clock_out and lunch cleared, so the next ClockIn starts fresh. Sweeping
    twice changes nothing.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        *,
        activity: ActivityLogger,
        clock: Callable[[], datetime] = now_local,
        retries: int = DEFAULT_TRANSACTION_RETRIES,
    ):
        self._ledger = ledger
        self._activity = activity
        self._clock = clock
        self._retries = int(retries)

    def sweep(self, user_id: int, as_of_date: Optional[date] = None) -> List[TimeSession]:
        as_of = as_of_date or self._clock().date()

        def work(tx: LedgerTransaction) -> List[TimeSession]:
            stale = tx.list_stale_open(user_id, before=as_of)
            finalized: List[TimeSession] = []

            for brk in (s for s in stale if s.is_break):
                closed = closed_with_raw_hours(brk, end_of_day(brk.work_date))
                tx.update(closed)
                finalized.append(closed)

            for entry in (s for s in stale if s.is_work):
                closed = closed_work_segment(tx, entry, end_of_day(entry.work_date))
                cleared = replace(closed, clock_in=None, clock_out=None, lunch_start=None, lunch_end=None)
                tx.update(cleared)
                finalized.append(cleared)

            for timer in (s for s in stale if s.is_task_timer):
                closed = closed_with_raw_hours(timer, end_of_day(timer.work_date))
                tx.update(closed)
                finalized.append(closed)

            return finalized

        finalized = run_atomic(self._ledger, work, retries=self._retries)
        for session in finalized:
            self._activity.log(
                user_id,
                ActivityAction.AUTO_CLOCK_OUT,
                f"Auto clock-out at end of {session.work_date.isoformat()}",
                {
                    "entry_id": session.id,
                    "entry_type": session.entry_type.value,
                    "task_id": session.task_id,
                    "total_hours": str(session.total_hours),
                },
            )
        if finalized:
            logger.info("rollover_finalized count=%s", len(finalized), extra={"user_id": user_id})
        return finalized

    def sweep_all(self, as_of: Optional[date] = None) -> Dict[int, int]:
        """Sweep every user with stale sessions; returns {user_id: sessions finalized}."""

        as_of = as_of or self._clock().date()
        summary: Dict[int, int] = {}
        for user_id in self._ledger.list_users_with_stale_sessions(before=as_of):
            try:
                summary[user_id] = len(self.sweep(user_id, as_of))
            except PersistenceError:
                logger.exception("rollover_failed", extra={"user_id": user_id})
        return summary
