from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from src.time_tracker.time_tracker.core.enums import EntryType

JAN_15 = date(2024, 1, 15)
JAN_16 = date(2024, 1, 16)
DAY_END = datetime(2024, 1, 15, 23, 59, 59, 999999)


def test_forgotten_clock_out_is_finalized_at_day_end(container, ledger, clock):
    svc = container.time_entry_service
    entry = svc.clock_in(1, now=datetime(2024, 1, 15, 22, 0))

    clock.now = datetime(2024, 1, 16, 8, 0)
    finalized = container.rollover_sweeper.sweep(1)

    row = ledger.get(entry.id)
    assert [s.id for s in finalized] == [entry.id]
    assert row.total_hours == Decimal("2.00")
    assert row.clock_in is None
    assert row.clock_out is None
    assert row.lunch_start is None
    assert row.lunch_end is None
    assert row.work_date == JAN_15

    fresh = svc.clock_in(1, now=datetime(2024, 1, 16, 8, 0))
    assert fresh.id != entry.id
    assert fresh.work_date == JAN_16
    assert fresh.total_hours == Decimal("0.00")


def test_sweep_twice_changes_nothing(container, ledger):
    ledger.add(user_id=1, work_date=JAN_15, clock_in=datetime(2024, 1, 15, 20, 0))

    container.rollover_sweeper.sweep(1, JAN_16)
    after_first = dict(ledger.rows)
    second = container.rollover_sweeper.sweep(1, JAN_16)

    assert second == []
    assert ledger.rows == after_first
    assert not [r for r in ledger.rows.values() if r.is_open and r.work_date < JAN_16]


def test_open_break_and_lunch_close_at_day_end(container, ledger):
    work = ledger.add(
        user_id=1,
        work_date=JAN_15,
        clock_in=datetime(2024, 1, 15, 13, 0),
        lunch_start=datetime(2024, 1, 15, 14, 0),
        lunch_end=datetime(2024, 1, 15, 14, 30),
        total_hours=Decimal("3.00"),
    )
    brk = ledger.add(
        user_id=1,
        work_date=JAN_15,
        entry_type=EntryType.BREAK,
        clock_in=datetime(2024, 1, 15, 23, 0),
    )

    container.rollover_sweeper.sweep(1, JAN_16)

    closed_break = ledger.get(brk.id)
    assert closed_break.clock_out == DAY_END
    assert closed_break.total_hours == Decimal("1.00")
    # 13:00 -> 24:00 is 11h, minus 0.5h lunch and 1h break, on top of the carried 3h.
    assert ledger.get(work.id).total_hours == Decimal("12.50")


def test_open_lunch_is_ended_before_computing(container, ledger):
    work = ledger.add(
        user_id=1,
        work_date=JAN_15,
        clock_in=datetime(2024, 1, 15, 20, 0),
        lunch_start=datetime(2024, 1, 15, 22, 0),
    )

    container.rollover_sweeper.sweep(1, JAN_16)

    assert ledger.get(work.id).total_hours == Decimal("2.00")


def test_stale_task_timer_gets_its_hours(container, ledger):
    timer = ledger.add(user_id=1, work_date=JAN_15, task_id=10, clock_in=datetime(2024, 1, 15, 21, 0))

    container.rollover_sweeper.sweep(1, JAN_16)

    row = ledger.get(timer.id)
    assert row.clock_out == DAY_END
    assert row.total_hours == Decimal("3.00")


def test_todays_sessions_are_left_alone(container, ledger):
    today = ledger.add(user_id=1, work_date=JAN_16, clock_in=datetime(2024, 1, 16, 7, 0))

    assert container.rollover_sweeper.sweep(1, JAN_16) == []
    assert ledger.get(today.id).is_open


def test_auto_clock_out_is_logged_per_session(container, ledger, activity_repo):
    ledger.add(user_id=1, work_date=JAN_15, clock_in=datetime(2024, 1, 15, 20, 0))
    ledger.add(user_id=1, work_date=JAN_15, entry_type=EntryType.BREAK, clock_in=datetime(2024, 1, 15, 21, 0))

    container.rollover_sweeper.sweep(1, JAN_16)

    assert activity_repo.actions() == ["auto_clock_out", "auto_clock_out"]


def test_sweep_all_covers_every_user(container, ledger):
    ledger.add(user_id=1, work_date=JAN_15, clock_in=datetime(2024, 1, 15, 20, 0))
    ledger.add(user_id=2, work_date=date(2024, 1, 14), clock_in=datetime(2024, 1, 14, 18, 0))
    ledger.add(user_id=2, work_date=date(2024, 1, 14), task_id=10, clock_in=datetime(2024, 1, 14, 18, 30))

    summary = container.rollover_sweeper.sweep_all(JAN_16)

    assert summary == {1: 1, 2: 2}
    assert not [r for r in ledger.rows.values() if r.is_open]


def test_first_request_of_the_day_triggers_sweep(container, ledger, clock):
    ledger.add(user_id=1, work_date=JAN_15, clock_in=datetime(2024, 1, 15, 22, 0))
    clock.now = datetime(2024, 1, 16, 8, 0)

    finalized = container.rollover_sweeper.sweep(1)

    assert len(finalized) == 1
    assert finalized[0].total_hours == Decimal("2.00")
