"""Business-day adjustment of due dates against holiday intervals."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Sequence

from .data_models import HolidayInterval, HolidayShift
from .errors import HolidayResolutionError

# Ten years of consecutive holidays is treated as malformed input.
MAX_SHIFT_DAYS = 3660


def is_holiday(day: date, holidays: Iterable[HolidayInterval]) -> bool:
    """Return True if ``day`` lies inside any of the inclusive intervals."""
    return any(h.start_date <= day <= h.end_date for h in holidays)


def shift_to_business_day(
    day: date,
    holidays: Sequence[HolidayInterval],
    direction: HolidayShift,
    max_steps: int = MAX_SHIFT_DAYS,
) -> date:
    """Move ``day`` one calendar day at a time until it is not a holiday.

    ``FOLLOWING`` moves forward, ``PRECEDING`` moves backward. A date that is
    already a business day is returned unchanged.

    Raises
    ------
    HolidayResolutionError
        If no business day is found within ``max_steps`` days.
    """
    if direction == HolidayShift.FOLLOWING:
        step = timedelta(days=1)
    elif direction == HolidayShift.PRECEDING:
        step = timedelta(days=-1)
    else:
        raise ValueError(f"Unknown holiday shift: {direction}")

    current = day
    steps = 0
    while is_holiday(current, holidays):
        if steps >= max_steps:
            raise HolidayResolutionError(
                f"No business day within {max_steps} days of {day.isoformat()} "
                f"({direction.value.lower()})"
            )
        current += step
        steps += 1
    return current
