from __future__ import annotations

from datetime import datetime

import pytest

from src.time_tracker.time_tracker.container import wire_services
from src.time_tracker.time_tracker.core.enums import Role
from src.time_tracker.time_tracker.reporting.dispatcher import InlineDispatcher
from src.time_tracker.time_tracker.tasks.model import Task
from tests.fakes import (
    FakeActivityRepo,
    FakeLedger,
    FakeTasks,
    FakeUsers,
    MutableClock,
    RecordingNotifier,
    make_user,
)


@pytest.fixture
def clock():
    return MutableClock(datetime(2024, 1, 15, 9, 0, 0))


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def activity_repo():
    return FakeActivityRepo()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def tasks():
    return FakeTasks(
        Task(id=10, name="Onboarding checklist", external_task_id="86a1b2c3d"),
        Task(id=11, name="Internal tooling", external_task_id=None),
    )


@pytest.fixture
def users():
    return FakeUsers(make_user(1), make_user(2), make_user(99, role=Role.ADMIN))


@pytest.fixture
def container(ledger, activity_repo, notifier, tasks, users, clock):
    return wire_services(
        users_repo=users,
        tasks_repo=tasks,
        ledger_repo=ledger,
        activity_repo=activity_repo,
        notifier=notifier,
        dispatcher=InlineDispatcher(),
        clock=clock,
    )
