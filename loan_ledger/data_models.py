"""Data models for the loan ledger.

This module defines the inputs to a schedule computation (loan parameters,
holiday intervals, rate intervals and repayment events) and its outputs (the
schedule rows and the summary). Schedule rows are frozen dataclasses: once the
engine appends a row it is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union


class HolidayShift(Enum):
    """Direction in which a due date falling on a holiday is moved."""

    FOLLOWING = "FOLLOWING"
    PRECEDING = "PRECEDING"


class AdjustmentStrategy(Enum):
    """How the schedule reacts to rate changes and extra repayments.

    ``VARIABLE_INSTALLMENT`` keeps the end date fixed and re-derives the
    monthly payment. ``VARIABLE_TENURE`` keeps the payment fixed and lets the
    number of periods move instead.
    """

    VARIABLE_INSTALLMENT = "VARIABLE_INSTALLMENT"
    VARIABLE_TENURE = "VARIABLE_TENURE"


class RowType(Enum):
    INSTALLMENT = "INSTALLMENT"
    REPAYMENT = "REPAYMENT"
    SEGMENT = "SEGMENT"


class ScheduleStatus(Enum):
    PAID_OFF = "PAID_OFF"
    NON_CONVERGENT = "NON_CONVERGENT"


class NoteCode(Enum):
    """Language-neutral annotation codes attached to schedule rows."""

    DEFERRED = "DEFERRED"  # value: nominal date
    PREPONED = "PREPONED"  # value: nominal date
    RATE_CHANGED = "RATE_CHANGED"  # value: new rate
    PMT_RECALCULATED = "PMT_RECALCULATED"
    PMT_FIXED = "PMT_FIXED"
    BASIS = "BASIS"  # value: accrual balance
    EXTRA_REPAYMENT = "EXTRA_REPAYMENT"
    REPAYMENT_CAPPED = "REPAYMENT_CAPPED"  # value: unapplied excess
    TENURE_EXTENDED = "TENURE_EXTENDED"
    PAID_OFF_EARLY = "PAID_OFF_EARLY"
    ITERATION_LIMIT = "ITERATION_LIMIT"


@dataclass(frozen=True)
class Note:
    code: NoteCode
    value: Union[date, Decimal, None] = None


@dataclass(frozen=True)
class LoanParams:
    """Parameters of a single loan computation.

    Attributes
    ----------
    principal: Decimal
        The disbursed amount.
    initial_rate: Decimal
        Annual nominal rate in percent, used for any date not covered by a
        rate interval.
    tenure_months: int
        Contractual number of monthly periods.
    start_date: date
        Disbursement date. The first installment is due one month later.
    holiday_shift: HolidayShift
        Business-day convention for due dates falling on holidays.
    strategy: AdjustmentStrategy
        Recalculation strategy for rate changes and repayments.
    """

    principal: Decimal
    initial_rate: Decimal
    tenure_months: int
    start_date: date
    holiday_shift: HolidayShift = HolidayShift.FOLLOWING
    strategy: AdjustmentStrategy = AdjustmentStrategy.VARIABLE_INSTALLMENT


@dataclass(frozen=True)
class HolidayInterval:
    """An inclusive range of non-business days."""

    start_date: date
    end_date: date
    label: str = "Holiday"


@dataclass(frozen=True)
class RateInterval:
    """A period during which ``rate`` (percent) applies.

    When ``end_date`` is omitted the interval runs until the day before the
    next interval starts, or indefinitely if it is the last one.
    """

    start_date: date
    rate: Decimal
    end_date: Optional[date] = None


@dataclass(frozen=True)
class RepaymentEvent:
    """A lump-sum payment applied to principal on ``date``."""

    date: date
    amount: Decimal


@dataclass(frozen=True)
class ScheduleRow:
    """Fields shared by every row of the schedule.

    For installments ``outstanding_balance`` is the balance after the payment;
    for segments it is the balance interest accrued against.
    """

    period: int
    nominal_date: date
    actual_date: date
    days_count: int
    principal: Decimal
    interest: Decimal
    total: Decimal
    outstanding_balance: Decimal
    effective_rate: Decimal
    notes: Tuple[Note, ...]

    row_type: ClassVar[RowType]

    def has_note(self, code: NoteCode) -> bool:
        return any(n.code is code for n in self.notes)


@dataclass(frozen=True)
class InstallmentRow(ScheduleRow):
    row_type: ClassVar[RowType] = RowType.INSTALLMENT


@dataclass(frozen=True)
class RepaymentRow(ScheduleRow):
    row_type: ClassVar[RowType] = RowType.REPAYMENT


@dataclass(frozen=True)
class SegmentRow(ScheduleRow):
    """A sub-range of a period with constant rate and balance.

    Interest accrues on the days ``segment_start + 1`` through
    ``segment_end``; consecutive segments share their boundary date.
    """

    segment_start: date
    segment_end: date

    row_type: ClassVar[RowType] = RowType.SEGMENT


@dataclass(frozen=True)
class Summary:
    total_principal: Decimal
    total_interest: Decimal
    total_paid: Decimal
    payoff_date: date
    status: ScheduleStatus
    outstanding_balance: Decimal
    installments: int
    final_payment: Decimal
    nominal_end_date: date

    @property
    def converged(self) -> bool:
        return self.status is ScheduleStatus.PAID_OFF
