from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used by the role check."""

    ADMIN = "admin"
    MANAGER = "manager"
    DEVELOPER = "developer"
    EMPLOYEE = "employee"


class EntryType(str, Enum):
    """Ledger row type. Task timers are WORK rows with a task_id."""

    WORK = "work"
    BREAK = "break"


class ActivityAction(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    LUNCH_START = "lunch_start"
    LUNCH_END = "lunch_end"
    TASK_START = "task_start"
    TASK_STOP = "task_stop"
    AUTO_CLOCK_OUT = "auto_clock_out"


class ReportEvent(str, Enum):
    """Event names pushed to the reporting list."""

    TIME_OUT = "Time Out"
    BREAK = "Break"
    TASK = "Task"
