"""Exceptions raised by the loan ledger engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from .data_models import ScheduleRow, Summary


class InvalidParameters(ValueError):
    """Raised before simulation when the inputs cannot produce a schedule."""


class HolidayResolutionError(RuntimeError):
    """Raised when no business day is found within the search limit."""


class NonConvergentSchedule(RuntimeError):
    """Raised in strict mode when the loan is not repaid within the period limit.

    The partial schedule and its summary are kept on the exception so callers
    can still inspect how far the simulation got.
    """

    def __init__(self, message: str, rows: Tuple["ScheduleRow", ...], summary: "Summary") -> None:
        super().__init__(message)
        self.rows = rows
        self.summary = summary
