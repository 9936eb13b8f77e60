from datetime import datetime

from src.time_tracker.time_tracker.activity.service import ActivityLogger
from src.time_tracker.time_tracker.core.enums import ActivityAction
from tests.fakes import FakeActivityRepo


def test_log_stores_action_value_and_metadata():
    repo = FakeActivityRepo()
    ActivityLogger(repo).log(3, ActivityAction.CLOCK_IN, "Clocked in at 09:00:00", {"entry_id": 1})

    entry = repo.entries[0]
    assert entry.user_id == 3
    assert entry.action == "clock_in"
    assert entry.metadata == {"entry_id": 1}


def test_storage_failure_never_reaches_the_caller(caplog):
    ActivityLogger(FakeActivityRepo(fail=True)).log(3, "custom_action", "anything")

    assert any(r.getMessage() == "activity_log_failed" for r in caplog.records)


def test_failing_activity_log_does_not_fail_clock_in(container, activity_repo, ledger):
    activity_repo.fail = True

    entry = container.time_entry_service.clock_in(1, now=datetime(2024, 1, 15, 9, 0))

    assert ledger.get(entry.id).is_open
