"""Closing rules shared by clock-out, task stop and the rollover sweeper.

Each helper returns the closed session without persisting it, so callers can
adjust further fields (the rollover clears a finalized work row) before a
single ``tx.update``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from .accumulation import add_hours, net_segment_hours
from .model import TimeSession
from .repository import LedgerTransaction


def closed_with_raw_hours(entry: TimeSession, at: datetime) -> TimeSession:
    """Breaks and task timers: total_hours is the plain clock_in..at duration."""
    return replace(entry, clock_out=at, total_hours=net_segment_hours(entry.clock_in, at))


def closed_work_segment(tx: LedgerTransaction, entry: TimeSession, at: datetime) -> TimeSession:
    """Close a work row at ``at`` and add the segment's net hours to its carried total.

    An open lunch ends at ``at``. Breaks are read back from the ledger, so any
    open break must already be closed (and updated) in this transaction.
    """

    # An unended lunch is ended here and deducted; older ledgers left it open
    # and counted it as worked time.
    lunch_end = at if entry.lunch_open else entry.lunch_end
    breaks = tx.list_breaks_in_segment(entry.user_id, entry.work_date, start=entry.clock_in, end=at)
    segment = net_segment_hours(
        entry.clock_in,
        at,
        breaks=[(b.clock_in, b.clock_out) for b in breaks],
        lunch=(entry.lunch_start, lunch_end),
    )
    return replace(
        entry,
        clock_out=at,
        lunch_end=lunch_end,
        total_hours=add_hours(entry.total_hours, segment),
    )
