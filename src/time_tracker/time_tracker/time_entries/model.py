from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import EntryType


@dataclass(frozen=True)
class TimeSession:
    """Domain entity: one ledger row (work segment, break, or task timer).

    ``work_date`` is the owning day; it never moves, even when the row is
    closed after midnight by the rollover sweeper.
    """

    id: int
    user_id: int
    work_date: date
    entry_type: EntryType
    clock_in: Optional[datetime]
    clock_out: Optional[datetime] = None
    task_id: Optional[int] = None
    related_task_id: Optional[int] = None
    lunch_start: Optional[datetime] = None
    lunch_end: Optional[datetime] = None
    total_hours: Decimal = Decimal("0.00")
    created_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.clock_in is not None and self.clock_out is None

    @property
    def is_task_timer(self) -> bool:
        return self.task_id is not None

    @property
    def is_work(self) -> bool:
        return self.entry_type == EntryType.WORK and self.task_id is None

    @property
    def is_break(self) -> bool:
        return self.entry_type == EntryType.BREAK

    @property
    def lunch_open(self) -> bool:
        return self.lunch_start is not None and self.lunch_end is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "related_task_id": self.related_task_id,
            "date": self.work_date.isoformat(),
            "entry_type": self.entry_type.value,
            "clock_in": isoformat_or_none(self.clock_in),
            "clock_out": isoformat_or_none(self.clock_out),
            "lunch_start": isoformat_or_none(self.lunch_start),
            "lunch_end": isoformat_or_none(self.lunch_end),
            "total_hours": f"{self.total_hours:.2f}",
        }


@dataclass(frozen=True)
class NewTimeSession:
    """Insert payload; ids and timestamps are assigned by the store."""

    user_id: int
    work_date: date
    entry_type: EntryType
    clock_in: datetime
    task_id: Optional[int] = None
    related_task_id: Optional[int] = None
    total_hours: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class WorkSessionView:
    """Read-model for a work row with the legacy break fields projected in.

    ``break_start``/``break_end`` come from the latest break session inside the
    work segment; they are never stored on the work row itself.
    """

    session: TimeSession
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None

    @property
    def on_break(self) -> bool:
        return self.break_start is not None and self.break_end is None

    def to_dict(self) -> dict:
        data = self.session.to_dict()
        data["break_start"] = isoformat_or_none(self.break_start)
        data["break_end"] = isoformat_or_none(self.break_end)
        return data
