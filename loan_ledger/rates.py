"""Resolution of the nominal annual rate applicable on a given day.

Rate intervals may be open-ended: an interval without an end date lasts until
the day before the next interval (by start date) begins, and the last one runs
indefinitely. Days not covered by any interval fall back to the loan's
initial rate.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from .data_models import RateInterval

_Entry = Tuple[date, Optional[date], Decimal]


def effective_intervals(intervals: Iterable[RateInterval]) -> List[_Entry]:
    """Return ``(start, effective_end, rate)`` tuples sorted by start date.

    ``effective_end`` is ``None`` for an unbounded interval.
    """
    ordered = sorted(intervals, key=lambda r: r.start_date)
    entries: List[_Entry] = []
    for idx, interval in enumerate(ordered):
        end = interval.end_date
        if end is None and idx + 1 < len(ordered):
            end = ordered[idx + 1].start_date - timedelta(days=1)
        entries.append((interval.start_date, end, interval.rate))
    return entries


class RateTable:
    """Precomputed lookup over a set of rate intervals.

    The engine queries the table once per accrual day, so the sorting and
    effective-end derivation happen only once per computation.
    """

    def __init__(self, initial_rate: Decimal, intervals: Iterable[RateInterval]) -> None:
        self.initial_rate = initial_rate
        self._entries = effective_intervals(intervals)

    def rate_on(self, day: date) -> Decimal:
        match: Optional[_Entry] = None
        for entry in self._entries:
            start, end, _ = entry
            if start > day:
                break
            if end is None or day <= end:
                # entries are sorted, so a later match has the later start
                match = entry
        if match is None:
            return self.initial_rate
        return match[2]


def rate_on_date(day: date, initial_rate: Decimal, intervals: Iterable[RateInterval]) -> Decimal:
    """Return the annual rate (percent) applicable on ``day``."""
    return RateTable(initial_rate, intervals).rate_on(day)
