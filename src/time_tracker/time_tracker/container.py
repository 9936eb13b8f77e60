from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .activity.mysql_activity_repository import MySQLActivityRepository
from .activity.repository import ActivityRepository
from .activity.service import ActivityLogger
from .core.constants import (
    DEFAULT_REPORTING_TIMEOUT_SECONDS,
    DEFAULT_REPORTING_WORKERS,
    DEFAULT_TRANSACTION_RETRIES,
)
from .database.connection import DBConfig, DatabaseConnection
from .reporting.dispatcher import BackgroundDispatcher, Dispatcher
from .reporting.notifier import HttpReportingNotifier, NullReportingNotifier, ReportingNotifier
from .reporting.service import ReportingService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .time_entries.mysql_time_entry_repository import MySQLLedgerRepository
from .time_entries.repository import LedgerRepository
from .time_entries.rollover import RolloverSweeper
from .time_entries.service import TimeEntryService
from .time_entries.task_timer import TaskTimerService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    tasks_repo: TaskRepository
    ledger_repo: LedgerRepository
    activity_repo: ActivityRepository

    notifier: ReportingNotifier
    dispatcher: Dispatcher

    auth_service: AuthService
    activity_logger: ActivityLogger
    reporting_service: ReportingService
    time_entry_service: TimeEntryService
    task_timer_service: TaskTimerService
    rollover_sweeper: RolloverSweeper


def build_notifier(settings: Any = None) -> ReportingNotifier:
    base_url = getattr(settings, "REPORTING_BASE_URL", "") or ""
    api_token = getattr(settings, "REPORTING_API_TOKEN", "") or ""
    if not base_url or not api_token:
        return NullReportingNotifier()
    return HttpReportingNotifier(
        base_url=base_url,
        api_token=api_token,
        list_id=getattr(settings, "REPORTING_LIST_ID", None),
        custom_fields=getattr(settings, "REPORTING_CUSTOM_FIELDS", {}),
        timeout=float(getattr(settings, "REPORTING_TIMEOUT_SECONDS", DEFAULT_REPORTING_TIMEOUT_SECONDS)),
    )


def wire_services(
    *,
    users_repo: UserRepository,
    tasks_repo: TaskRepository,
    ledger_repo: LedgerRepository,
    activity_repo: ActivityRepository,
    notifier: ReportingNotifier,
    dispatcher: Dispatcher,
    conn: Optional[DatabaseConnection] = None,
    task_requires_clock_in: bool = False,
    transaction_retries: int = DEFAULT_TRANSACTION_RETRIES,
    clock=None,
) -> Container:
    """Build the service graph on top of any repository implementations."""

    clock_kw = {"clock": clock} if clock else {}

    activity_logger = ActivityLogger(activity_repo)
    reporting_service = ReportingService(
        notifier,
        dispatcher,
        users=users_repo,
        tasks=tasks_repo,
        ledger=ledger_repo,
    )
    time_entry_service = TimeEntryService(
        ledger_repo,
        activity=activity_logger,
        reporting=reporting_service,
        retries=transaction_retries,
        **clock_kw,
    )
    task_timer_service = TaskTimerService(
        ledger_repo,
        tasks_repo,
        activity=activity_logger,
        reporting=reporting_service,
        requires_clock_in=task_requires_clock_in,
        retries=transaction_retries,
        **clock_kw,
    )
    rollover_sweeper = RolloverSweeper(
        ledger_repo,
        activity=activity_logger,
        retries=transaction_retries,
        **clock_kw,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        tasks_repo=tasks_repo,
        ledger_repo=ledger_repo,
        activity_repo=activity_repo,
        notifier=notifier,
        dispatcher=dispatcher,
        auth_service=AuthService(users_repo),
        activity_logger=activity_logger,
        reporting_service=reporting_service,
        time_entry_service=time_entry_service,
        task_timer_service=task_timer_service,
        rollover_sweeper=rollover_sweeper,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        users_repo=MySQLUserRepository(conn),
        tasks_repo=MySQLTaskRepository(conn),
        ledger_repo=MySQLLedgerRepository(conn),
        activity_repo=MySQLActivityRepository(conn),
        notifier=build_notifier(settings),
        dispatcher=BackgroundDispatcher(int(getattr(settings, "REPORTING_WORKERS", DEFAULT_REPORTING_WORKERS))),
        conn=conn,
        task_requires_clock_in=bool(getattr(settings, "TASK_REQUIRES_CLOCK_IN", False)),
        transaction_retries=int(getattr(settings, "TRANSACTION_RETRIES", DEFAULT_TRANSACTION_RETRIES)),
    )
