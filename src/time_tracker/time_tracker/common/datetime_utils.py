from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def end_of_day(day: date) -> datetime:
    """Last representable instant of ``day`` (23:59:59.999999)."""
    return datetime.combine(day, time.max)


def start_of_week(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def end_of_week(day: date) -> date:
    return start_of_week(day) + timedelta(days=6)


def format_duration_seconds(seconds: int) -> str:
    """Format seconds as ``+{h}h{m}m{s}s`` without zero-padding (e.g. ``+2h30m15s``)."""
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"+{hours}h{minutes}m{secs}s"


def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
