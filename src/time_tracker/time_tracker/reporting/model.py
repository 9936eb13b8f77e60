from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from ..common.datetime_utils import format_duration_seconds
from ..core.constants import REPORT_MINUTES_PRECISION

REPORT_TIME_FORMAT = "%b %d,%Y %H:%M:%S"
COMMENT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ReportRow:
    """One row of the external reporting list (clock-out, break, task stop)."""

    event_name: str
    start: datetime
    end: datetime
    user_name: str
    user_email: str
    work_date: date
    related_task_id: Optional[str] = None
    local_task_id: Optional[int] = None
    entry_id: Optional[int] = None

    @property
    def duration_seconds(self) -> int:
        return max(1, int((self.end - self.start).total_seconds()))

    @property
    def total_minutes(self) -> Decimal:
        quantum = Decimal(1).scaleb(-REPORT_MINUTES_PRECISION)
        return (Decimal(self.duration_seconds) / Decimal(60)).quantize(quantum, rounding=ROUND_HALF_UP)

    @property
    def time_in_text(self) -> str:
        return self.start.strftime(REPORT_TIME_FORMAT)

    @property
    def time_out_text(self) -> str:
        return self.end.strftime(REPORT_TIME_FORMAT)

    @property
    def notes(self) -> str:
        return (
            f"Time Tracked: {format_duration_seconds(self.duration_seconds)} by {self.user_name} "
            f"({self.time_in_text} - {self.time_out_text})"
        )

    def description_lines(self) -> List[str]:
        lines = [
            f"Task ID: {self.related_task_id or 'n/a'}",
            f"Time In: {self.time_in_text}",
            f"Time Out: {self.time_out_text}",
            f"Total Time (mins): {self.total_minutes}",
            f"User: {self.user_name}",
            f"Notes: {self.notes}",
        ]
        if self.entry_id is not None:
            lines.append(f"Entry ID: {self.entry_id}")
        return lines


@dataclass(frozen=True)
class TaskHours:
    """Aggregates pushed onto the external task after a task timer stops."""

    external_task_id: str
    total: Decimal
    today: Decimal
    week: Decimal


@dataclass(frozen=True)
class TaskComment:
    external_task_id: str
    text: str

    @classmethod
    def for_stopped_timer(cls, external_task_id: str, *, user_name: str, start: datetime, end: datetime) -> "TaskComment":
        seconds = max(1, int((end - start).total_seconds()))
        text = (
            f"Time Tracker: {format_duration_seconds(seconds)} by {user_name} "
            f"({start.strftime(COMMENT_TIME_FORMAT)}–{end.strftime(COMMENT_TIME_FORMAT)})"
        )
        return cls(external_task_id=external_task_id, text=text)
