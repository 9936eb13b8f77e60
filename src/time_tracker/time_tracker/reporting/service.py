from __future__ import annotations

import logging
from typing import Optional

from ..common.datetime_utils import end_of_week, start_of_week
from ..core.constants import EXTERNAL_TASK_URL
from ..core.enums import ReportEvent
from ..tasks.repository import TaskRepository
from ..time_entries.model import TimeSession
from ..time_entries.repository import LedgerRepository
from ..users.repository import UserRepository
from .dispatcher import Dispatcher
from .model import ReportRow, TaskComment, TaskHours
from .notifier import ReportingNotifier

logger = logging.getLogger(__name__)


class ReportingService:
    """Turns closed sessions into outbound reporting calls.

    Every public method only schedules work on the dispatcher; lookups and
    HTTP calls happen off the request path, after the ledger commit.
    """

    def __init__(
        self,
        notifier: ReportingNotifier,
        dispatcher: Dispatcher,
        *,
        users: UserRepository,
        tasks: TaskRepository,
        ledger: LedgerRepository,
    ):
        self._notifier = notifier
        self._dispatcher = dispatcher
        self._users = users
        self._tasks = tasks
        self._ledger = ledger

    def session_closed(self, event: ReportEvent, session: TimeSession) -> None:
        self._dispatcher.submit(self._push_report_row, event, session)

    def task_stopped(self, session: TimeSession) -> None:
        # Separate jobs so one failing call does not suppress the others.
        self._dispatcher.submit(self._push_task_hours, session)
        self._dispatcher.submit(self._push_task_comment, session)
        self._dispatcher.submit(self._push_report_row, ReportEvent.TASK, session)

    def _external_task_id(self, task_id: Optional[int]) -> Optional[str]:
        if task_id is None:
            return None
        task = self._tasks.get_by_id(task_id)
        return task.external_task_id if task else None

    @staticmethod
    def _row_name(event: ReportEvent, session: TimeSession, external_task_id: Optional[str]) -> str:
        """Task rows are named after the task they timed; the others after the event."""
        if event is not ReportEvent.TASK:
            return event.value
        if external_task_id:
            return EXTERNAL_TASK_URL.format(task_id=external_task_id)
        return f"{session.work_date.isoformat()} | Task #{session.task_id}"

    def _build_row(self, event: ReportEvent, session: TimeSession, external_task_id: Optional[str]) -> Optional[ReportRow]:
        if session.clock_in is None or session.clock_out is None:
            return None
        user = self._users.get_by_id(session.user_id)
        if not user:
            logger.warning("report_row_skipped_unknown_user", extra={"user_id": session.user_id})
            return None
        return ReportRow(
            event_name=self._row_name(event, session, external_task_id),
            start=session.clock_in,
            end=session.clock_out,
            user_name=user.name,
            user_email=user.email,
            work_date=session.work_date,
            related_task_id=external_task_id,
            local_task_id=session.task_id if session.task_id is not None else session.related_task_id,
            entry_id=session.id,
        )

    def _push_report_row(self, event: ReportEvent, session: TimeSession) -> None:
        external_id = self._external_task_id(session.task_id or session.related_task_id)
        row = self._build_row(event, session, external_id)
        if row:
            self._notifier.notify_report_row(row)

    def _push_task_hours(self, session: TimeSession) -> None:
        external_id = self._external_task_id(session.task_id)
        if not external_id or session.task_id is None:
            return
        day = session.work_date
        hours = TaskHours(
            external_task_id=external_id,
            total=self._ledger.sum_task_hours(session.task_id),
            today=self._ledger.sum_task_hours(session.task_id, start=day, end=day),
            week=self._ledger.sum_task_hours(session.task_id, start=start_of_week(day), end=end_of_week(day)),
        )
        self._notifier.update_task_hours(hours)

    def _push_task_comment(self, session: TimeSession) -> None:
        external_id = self._external_task_id(session.task_id)
        if not external_id or session.clock_in is None or session.clock_out is None:
            return
        user = self._users.get_by_id(session.user_id)
        if not user:
            return
        self._notifier.add_task_comment(
            TaskComment.for_stopped_timer(
                external_id,
                user_name=user.name,
                start=session.clock_in,
                end=session.clock_out,
            )
        )
