from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.time_tracker.time_tracker.core.enums import ReportEvent
from src.time_tracker.time_tracker.core.exceptions import (
    AlreadyOnBreak,
    AlreadyOpen,
    LunchAlreadyEnded,
    NoBreakOpen,
    NoLunchOpen,
    NotClockedIn,
    OnLunch,
)

DAY = date(2024, 1, 15)


def at(h, m=0, s=0):
    return datetime(2024, 1, 15, h, m, s)


def open_work_rows(ledger, user_id=1, day=DAY):
    return [r for r in ledger.rows.values() if r.user_id == user_id and r.work_date == day and r.is_work and r.is_open]


def test_workday_with_break_totals_seven_and_a_half_hours(container, ledger, notifier):
    svc = container.time_entry_service

    work = svc.clock_in(1, now=at(9))
    brk = svc.start_break(1, now=at(12))
    svc.end_break(1, now=at(12, 30))
    result = svc.clock_out(1, now=at(17))

    assert result.session.id == work.id
    assert result.session.total_hours == Decimal("7.50")
    assert result.session.clock_out == at(17)
    assert ledger.get(brk.id).clock_out == at(12, 30)
    assert ledger.get(brk.id).total_hours == Decimal("0.50")
    assert [r.event_name for r in notifier.report_rows] == [ReportEvent.BREAK.value, ReportEvent.TIME_OUT.value]


def test_second_clock_in_same_day_is_rejected(container, ledger):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))

    with pytest.raises(AlreadyOpen):
        svc.clock_in(1, now=at(9, 5))

    assert len(open_work_rows(ledger)) == 1


def test_other_users_are_independent(container, ledger):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.clock_in(2, now=at(9))

    assert len(open_work_rows(ledger, 1)) == 1
    assert len(open_work_rows(ledger, 2)) == 1


def test_carry_forward_across_cycles(container, ledger):
    svc = container.time_entry_service

    svc.clock_in(1, now=at(9))
    first = svc.clock_out(1, now=at(11)).session
    second = svc.clock_in(1, now=at(13))
    assert second.id != first.id
    assert second.total_hours == Decimal("2.00")

    final = svc.clock_out(1, now=at(15)).session
    assert final.total_hours == Decimal("4.00")
    # Ordinary clock-out keeps the first row intact.
    assert ledger.get(first.id).clock_in == at(9)
    assert ledger.get(first.id).total_hours == Decimal("2.00")


def test_total_never_decreases_over_many_cycles(container):
    svc = container.time_entry_service
    totals = []
    for start in (8, 10, 12, 14):
        svc.clock_in(1, now=at(start))
        totals.append(svc.clock_out(1, now=at(start, 45)).session.total_hours)

    assert totals == sorted(totals)
    assert totals[-1] == Decimal("3.00")


def test_clock_in_keeps_task_reference_apart_from_timer(container):
    entry = container.time_entry_service.clock_in(1, task_id=10, now=at(9))

    assert entry.related_task_id == 10
    assert entry.task_id is None
    assert entry.is_work


def test_clock_out_without_clock_in(container):
    with pytest.raises(NotClockedIn):
        container.time_entry_service.clock_out(1, now=at(17))


def test_clock_out_closes_open_break_and_lunch(container, ledger):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_lunch(1, now=at(12))
    svc.end_lunch(1, now=at(12, 30))
    brk = svc.start_break(1, now=at(16))

    result = svc.clock_out(1, now=at(17))

    assert result.closed_break is not None
    assert ledger.get(brk.id).clock_out == at(17)
    assert ledger.get(brk.id).total_hours == Decimal("1.00")
    # 8h - 0.5h lunch - 1h break
    assert result.session.total_hours == Decimal("6.50")


def test_clock_out_during_lunch_ends_lunch(container):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_lunch(1, now=at(12))

    closed = svc.clock_out(1, now=at(13)).session

    assert closed.lunch_end == at(13)
    assert closed.total_hours == Decimal("3.00")


def test_break_requires_clock_in(container):
    with pytest.raises(NotClockedIn):
        container.time_entry_service.start_break(1, now=at(10))


def test_second_break_while_on_break(container):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_break(1, now=at(10))

    with pytest.raises(AlreadyOnBreak):
        svc.start_break(1, now=at(10, 5))


def test_break_not_allowed_during_lunch(container):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_lunch(1, now=at(12))

    with pytest.raises(OnLunch) as err:
        svc.start_break(1, now=at(12, 10))
    assert err.value.code == "on_lunch"


def test_lunch_not_allowed_during_break(container):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_break(1, now=at(10))

    with pytest.raises(AlreadyOnBreak):
        svc.start_lunch(1, now=at(10, 5))


def test_end_break_without_break(container):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))

    with pytest.raises(NoBreakOpen):
        svc.end_break(1, now=at(10))


def test_lunch_rules(container):
    svc = container.time_entry_service

    with pytest.raises(NotClockedIn):
        svc.start_lunch(1, now=at(8))

    svc.clock_in(1, now=at(9))
    with pytest.raises(NoLunchOpen):
        svc.end_lunch(1, now=at(11))

    svc.start_lunch(1, now=at(12))
    with pytest.raises(OnLunch):
        svc.start_lunch(1, now=at(12, 1))

    svc.end_lunch(1, now=at(12, 45))
    with pytest.raises(LunchAlreadyEnded):
        svc.end_lunch(1, now=at(12, 50))
    with pytest.raises(LunchAlreadyEnded):
        svc.start_lunch(1, now=at(13))


def test_end_lunch_does_not_touch_total_or_report(container, notifier):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_lunch(1, now=at(12))
    entry = svc.end_lunch(1, now=at(12, 30))

    assert entry.total_hours == Decimal("0.00")
    assert notifier.report_rows == []


def test_break_and_lunch_never_overlap(container, ledger):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_break(1, now=at(10))
    svc.end_break(1, now=at(10, 15))
    entry = svc.start_lunch(1, now=at(12))
    svc.end_lunch(1, now=at(13))

    breaks = [r for r in ledger.rows.values() if r.is_break]
    for brk in breaks:
        assert brk.clock_out <= entry.lunch_start or brk.clock_in >= at(13)


def test_rejected_command_writes_nothing(container, ledger, activity_repo):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    before = dict(ledger.rows)
    logged = len(activity_repo.entries)

    with pytest.raises(AlreadyOpen):
        svc.clock_in(1, now=at(10))

    assert ledger.rows == before
    assert len(activity_repo.entries) == logged


def test_current_entry_projects_latest_break(container):
    svc = container.time_entry_service
    assert svc.current_entry(1, now=at(8)) is None

    svc.clock_in(1, now=at(9))
    svc.start_break(1, now=at(10))
    svc.end_break(1, now=at(10, 10))
    svc.start_break(1, now=at(11))

    view = svc.current_entry(1, now=at(11, 5))
    assert view.break_start == at(11)
    assert view.break_end is None
    assert view.on_break
    data = view.to_dict()
    assert data["date"] == "2024-01-15"
    assert data["break_start"] == "2024-01-15T11:00:00"


def test_my_entries_newest_first_and_limited(container):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.clock_out(1, now=at(10))
    svc.clock_in(1, now=at(11))

    entries = svc.my_entries(1, limit=1)
    assert len(entries) == 1
    assert entries[0].clock_in == at(11)


def test_activity_is_logged_after_commit(container, activity_repo):
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))
    svc.start_break(1, now=at(10))
    svc.end_break(1, now=at(10, 15))
    svc.clock_out(1, now=at(17))

    assert activity_repo.actions() == ["clock_in", "break_start", "break_end", "clock_out"]


def test_reporting_failure_does_not_fail_clock_out(container, notifier, ledger):
    notifier.fail = True
    svc = container.time_entry_service
    svc.clock_in(1, now=at(9))

    result = svc.clock_out(1, now=at(10))

    assert result.session.total_hours == Decimal("1.00")
    assert ledger.get(result.session.id).clock_out == at(10)


def test_end_lunch_before_clock_in_reports_no_lunch(container, ledger):
    with pytest.raises(NoLunchOpen) as err:
        container.time_entry_service.end_lunch(1, now=at(12))

    assert err.value.code == "no_lunch_open"
    assert ledger.rows == {}
