"""Hour accumulation engine.

Pure functions over timestamps; nothing here reads the clock, so the same
math serves an ordinary clock-out and the rollover's synthetic day-end.

Rounding convention: hours are quantized to 2 places with ROUND_HALF_UP
(0.125h -> 0.13), once, after all deductions.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple, Union

from ..core.constants import HOURS_PRECISION

Span = Tuple[Optional[datetime], Optional[datetime]]
Number = Union[Decimal, int, float, str]

_QUANTUM = Decimal(1).scaleb(-HOURS_PRECISION)
_SIXTY = Decimal(60)


def quantize_hours(value: Number) -> Decimal:
    return Decimal(str(value)).quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def minutes_between(start: datetime, end: datetime) -> Decimal:
    """Fractional minutes from start to end (second precision and below)."""
    return Decimal(str((end - start).total_seconds())) / _SIXTY


def _span_minutes(span: Span) -> Decimal:
    start, end = span
    if start is None or end is None:
        return Decimal(0)
    return max(minutes_between(start, end), Decimal(0))


def net_segment_hours(
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
    *,
    breaks: Iterable[Span] = (),
    lunch: Span = (None, None),
) -> Decimal:
    """Segment duration minus every closed break span and the lunch span."""

    if clock_in is None or clock_out is None:
        return quantize_hours(0)

    minutes = minutes_between(clock_in, clock_out)
    for span in breaks:
        minutes -= _span_minutes(span)
    minutes -= _span_minutes(lunch)

    minutes = max(minutes, Decimal(0))
    return quantize_hours(minutes / _SIXTY)


def compute_segment_hours(
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
    break_start: Optional[datetime] = None,
    break_end: Optional[datetime] = None,
    lunch_start: Optional[datetime] = None,
    lunch_end: Optional[datetime] = None,
) -> Decimal:
    """Hours worked in one segment, net of one break and one lunch.

    >>> compute_segment_hours(datetime(2024, 1, 15, 9), datetime(2024, 1, 15, 17),
    ...                       datetime(2024, 1, 15, 12), datetime(2024, 1, 15, 12, 30))
    Decimal('7.50')
    """

    return net_segment_hours(
        clock_in,
        clock_out,
        breaks=[(break_start, break_end)],
        lunch=(lunch_start, lunch_end),
    )


def add_hours(carried: Number, segment: Number) -> Decimal:
    """Carry-forward sum; never lower than ``carried``."""
    carried_d = quantize_hours(carried or 0)
    segment_d = max(quantize_hours(segment or 0), Decimal(0))
    return quantize_hours(carried_d + segment_d)
