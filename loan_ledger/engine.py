"""Core calculation engine for the loan ledger.

This module implements the schedule generation: for every monthly period it
resolves the holiday-adjusted due date, accrues interest day by day against
the floating rate table, applies lump-sum repayments on the day they occur and
re-derives the annuity payment according to the adjustment strategy. Interest
accrual within a period is split into segments whenever the rate or the
balance basis changes, so every period's interest can be audited.

Results are returned as a tuple of frozen schedule rows along with a
``Summary``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, getcontext
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .business_days import shift_to_business_day
from .data_models import (
    AdjustmentStrategy,
    HolidayInterval,
    HolidayShift,
    InstallmentRow,
    LoanParams,
    Note,
    NoteCode,
    RateInterval,
    RepaymentEvent,
    RepaymentRow,
    ScheduleRow,
    ScheduleStatus,
    SegmentRow,
    Summary,
)
from .errors import InvalidParameters, NonConvergentSchedule
from .rates import RateTable
from .utils import add_months

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# Balances below this are treated as fully repaid.
EPSILON = Decimal("0.01")
# Minimum rate movement (in percentage points) that triggers re-sizing.
RATE_EPSILON = Decimal("0.001")
DAYS_IN_YEAR = Decimal(365)
# 50 years of monthly periods.
MAX_PERIODS = 600


def annuity_payment(balance: Decimal, annual_rate_percent: Decimal, remaining_periods: int) -> Decimal:
    """Return the fixed monthly payment that amortizes ``balance``.

    The formula is:

        payment = B * r / (1 - (1 + r)^-n)

    where ``B`` is the balance, ``r`` is the monthly rate
    (``annual_rate_percent / 100 / 12``) and ``n`` the number of remaining
    periods. When the rate is zero, the payment simplifies to ``B / n``.
    """
    if remaining_periods <= 0:
        raise ValueError("Remaining periods must be positive")
    if annual_rate_percent == 0:
        return balance / Decimal(remaining_periods)
    if balance <= 0:
        return ZERO
    r = annual_rate_percent / Decimal(100) / Decimal(12)
    return balance * r / (1 - (1 + r) ** -remaining_periods)


@dataclass
class _OpenSegment:
    """Accrual segment currently collecting interest.

    ``start`` is the boundary date: interest for ``start`` itself belongs to
    the previous segment (or the previous period).
    """

    start: date
    rate: Decimal
    balance: Decimal
    interest: Decimal = ZERO

    def close(self, period: int, end: date) -> Optional[SegmentRow]:
        days = (end - self.start).days
        if days <= 0:
            return None
        return SegmentRow(
            period=period,
            nominal_date=end,
            actual_date=end,
            days_count=days,
            principal=ZERO,
            interest=self.interest,
            total=ZERO,
            outstanding_balance=self.balance,
            effective_rate=self.rate,
            notes=(Note(NoteCode.BASIS, self.balance),),
            segment_start=self.start,
            segment_end=end,
        )


def _is_plain_date(value: object) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


def _is_number(value: object) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite()
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_inputs(
    params: LoanParams,
    holidays: Sequence[HolidayInterval],
    rate_intervals: Sequence[RateInterval],
    repayments: Sequence[RepaymentEvent],
) -> None:
    """Reject inputs that cannot produce a meaningful schedule."""
    if not _is_number(params.principal) or params.principal <= 0:
        raise InvalidParameters(f"Principal must be a positive amount; got {params.principal!r}")
    if not _is_number(params.initial_rate) or params.initial_rate < 0:
        raise InvalidParameters(f"Initial rate must be a non-negative percentage; got {params.initial_rate!r}")
    if not isinstance(params.tenure_months, int) or isinstance(params.tenure_months, bool) or params.tenure_months <= 0:
        raise InvalidParameters(f"Tenure must be a positive number of months; got {params.tenure_months!r}")
    if not _is_plain_date(params.start_date):
        raise InvalidParameters(f"Start date must be a date; got {params.start_date!r}")
    if not isinstance(params.holiday_shift, HolidayShift):
        raise InvalidParameters(f"Unknown holiday shift: {params.holiday_shift!r}")
    if not isinstance(params.strategy, AdjustmentStrategy):
        raise InvalidParameters(f"Unknown adjustment strategy: {params.strategy!r}")

    for h in holidays:
        if not (_is_plain_date(h.start_date) and _is_plain_date(h.end_date)):
            raise InvalidParameters(f"Holiday '{h.label}' has malformed dates")
        if h.end_date < h.start_date:
            raise InvalidParameters(
                f"Holiday '{h.label}' ends ({h.end_date}) before it starts ({h.start_date})"
            )
    for r in rate_intervals:
        if not _is_plain_date(r.start_date) or (r.end_date is not None and not _is_plain_date(r.end_date)):
            raise InvalidParameters(f"Rate interval has malformed dates: {r!r}")
        if r.end_date is not None and r.end_date < r.start_date:
            raise InvalidParameters(
                f"Rate interval ends ({r.end_date}) before it starts ({r.start_date})"
            )
        if not _is_number(r.rate) or r.rate < 0:
            raise InvalidParameters(f"Rate must be a non-negative percentage; got {r.rate!r}")
    for ev in repayments:
        if not _is_plain_date(ev.date):
            raise InvalidParameters(f"Repayment has a malformed date: {ev.date!r}")
        if not _is_number(ev.amount) or ev.amount <= 0:
            raise InvalidParameters(f"Repayment amount must be positive; got {ev.amount!r}")


def _prepare_repayments(repayments: Iterable[RepaymentEvent]) -> Dict[date, List[RepaymentEvent]]:
    """Group repayments by date, keeping the order they were supplied in."""
    mapping: Dict[date, List[RepaymentEvent]] = {}
    for ev in repayments:
        mapping.setdefault(ev.date, []).append(ev)
    return mapping


def _remaining_periods(tenure: int, period: int) -> int:
    return max(tenure - (period - 1), 1)


def compute_schedule(
    params: LoanParams,
    holidays: Sequence[HolidayInterval] = (),
    rate_intervals: Sequence[RateInterval] = (),
    repayments: Sequence[RepaymentEvent] = (),
    *,
    max_periods: int = MAX_PERIODS,
    strict: bool = False,
) -> Tuple[Tuple[ScheduleRow, ...], Summary]:
    """Compute the day-accurate amortization schedule for a loan.

    Parameters
    ----------
    params: LoanParams
        The loan configuration.
    holidays: Sequence[HolidayInterval]
        Non-business days; due dates falling on them are shifted according
        to ``params.holiday_shift``.
    rate_intervals: Sequence[RateInterval]
        Floating rate table. Days not covered use ``params.initial_rate``.
    repayments: Sequence[RepaymentEvent]
        Lump sums applied on their exact date.
    max_periods: int
        Upper bound on the number of periods simulated.
    strict: bool
        Raise ``NonConvergentSchedule`` instead of returning a result flagged
        as ``NON_CONVERGENT`` when the limit is reached before payoff.

    Returns
    -------
    rows: Tuple[ScheduleRow, ...]
        Installment, repayment and segment rows in chronological order.
    summary: Summary
        Aggregate totals and the payoff status.
    """
    holidays = tuple(holidays)
    rate_intervals = tuple(rate_intervals)
    repayments = tuple(repayments)
    _validate_inputs(params, holidays, rate_intervals, repayments)
    if max_periods < 1:
        raise InvalidParameters(f"Period limit must be positive; got {max_periods}")

    principal = Decimal(params.principal)
    tenure = params.tenure_months
    variable_installment = params.strategy is AdjustmentStrategy.VARIABLE_INSTALLMENT
    rate_table = RateTable(Decimal(params.initial_rate), rate_intervals)
    repayment_map = _prepare_repayments(repayments)

    rows: List[ScheduleRow] = []
    balance = principal
    previous_date = params.start_date
    pmt_rate = rate_table.rate_on(params.start_date)
    payment = annuity_payment(balance, pmt_rate, tenure)
    total_interest = ZERO
    period = 0

    logger.debug(
        "Starting schedule: principal=%s rate=%s%% tenure=%d strategy=%s payment=%s",
        principal, pmt_rate, tenure, params.strategy.value, payment,
    )

    while balance > 0 and period < max_periods:
        period += 1
        nominal_date = add_months(params.start_date, period)
        actual_date = shift_to_business_day(nominal_date, holidays, params.holiday_shift)
        if actual_date <= previous_date:
            actual_date = previous_date + timedelta(days=1)
        days_count = (actual_date - previous_date).days

        notes: List[Note] = []
        if actual_date > nominal_date:
            notes.append(Note(NoteCode.DEFERRED, nominal_date))
        elif actual_date < nominal_date:
            notes.append(Note(NoteCode.PREPONED, nominal_date))

        # Re-size the payment when the rate in force at the period start moved
        rate_at_start = rate_table.rate_on(previous_date)
        if abs(rate_at_start - pmt_rate) > RATE_EPSILON:
            pmt_rate = rate_at_start
            notes.append(Note(NoteCode.RATE_CHANGED, rate_at_start))
            if variable_installment:
                payment = annuity_payment(balance, pmt_rate, _remaining_periods(tenure, period))
                notes.append(Note(NoteCode.PMT_RECALCULATED))
            else:
                notes.append(Note(NoteCode.PMT_FIXED))

        period_interest = ZERO
        balance_days = ZERO
        segment: Optional[_OpenSegment] = None
        day = previous_date
        for _ in range(days_count):
            day += timedelta(days=1)
            day_rate = rate_table.rate_on(day)
            if segment is None:
                segment = _OpenSegment(previous_date, day_rate, balance)
            elif day_rate != segment.rate:
                boundary = day - timedelta(days=1)
                closed = segment.close(period, boundary)
                if closed is not None:
                    rows.append(closed)
                segment = _OpenSegment(boundary, day_rate, balance)

            daily_interest = balance * (day_rate / Decimal(100)) / DAYS_IN_YEAR
            period_interest += daily_interest
            segment.interest += daily_interest
            balance_days += balance

            for event in repayment_map.get(day, ()):
                closed = segment.close(period, day)
                if closed is not None:
                    rows.append(closed)

                applied = min(event.amount, balance)
                balance -= applied
                repayment_notes = [Note(NoteCode.EXTRA_REPAYMENT)]
                if event.amount > applied:
                    excess = event.amount - applied
                    repayment_notes.append(Note(NoteCode.REPAYMENT_CAPPED, excess))
                    logger.warning(
                        "Repayment of %s on %s exceeds the outstanding balance; %s not applied",
                        event.amount, day.isoformat(), excess,
                    )
                if variable_installment:
                    pmt_rate = day_rate
                    payment = annuity_payment(balance, pmt_rate, _remaining_periods(tenure, period))
                    repayment_notes.append(Note(NoteCode.PMT_RECALCULATED))

                rows.append(
                    RepaymentRow(
                        period=period,
                        nominal_date=day,
                        actual_date=day,
                        days_count=0,
                        principal=applied,
                        interest=ZERO,
                        total=applied,
                        outstanding_balance=balance,
                        effective_rate=ZERO,
                        notes=tuple(repayment_notes),
                    )
                )
                segment = _OpenSegment(day, day_rate, balance)

        if segment is not None:
            closed = segment.close(period, actual_date)
            if closed is not None:
                rows.append(closed)

        effective_rate = ZERO
        if balance_days > 0:
            effective_rate = period_interest / balance_days * DAYS_IN_YEAR * Decimal(100)

        amount_due = balance + period_interest
        closing = (
            balance <= EPSILON
            or payment > amount_due - EPSILON
            or (variable_installment and period >= tenure)
        )
        if closing:
            principal_paid = balance
            total = amount_due
        else:
            # May be negative when interest exceeds the fixed payment
            principal_paid = payment - period_interest
            total = payment

        balance -= principal_paid
        if balance < EPSILON:
            balance = ZERO
        total_interest += period_interest

        if balance == 0 and period < tenure:
            notes.append(Note(NoteCode.PAID_OFF_EARLY))
        if period == tenure + 1:
            notes.append(Note(NoteCode.TENURE_EXTENDED))
        if balance > 0 and period >= max_periods:
            notes.append(Note(NoteCode.ITERATION_LIMIT))

        rows.append(
            InstallmentRow(
                period=period,
                nominal_date=nominal_date,
                actual_date=actual_date,
                days_count=days_count,
                principal=principal_paid,
                interest=period_interest,
                total=total,
                outstanding_balance=balance,
                effective_rate=effective_rate,
                notes=tuple(notes),
            )
        )
        logger.debug(
            "Period %d due %s: days=%d interest=%s principal=%s balance=%s",
            period, actual_date.isoformat(), days_count, period_interest, principal_paid, balance,
        )
        previous_date = actual_date

    unapplied = [d for d in repayment_map if d <= params.start_date or d > previous_date]
    if unapplied:
        logger.warning(
            "Repayments dated %s fall outside the schedule and were not applied",
            ", ".join(d.isoformat() for d in sorted(unapplied)),
        )

    summary = _build_summary(params, rows, principal, total_interest, balance)
    if not summary.converged:
        logger.warning(
            "Loan not repaid after %d periods; outstanding balance %s", period, balance
        )
        if strict:
            raise NonConvergentSchedule(
                f"Loan not repaid within {max_periods} periods; outstanding balance {balance:.2f}",
                tuple(rows),
                summary,
            )
    return tuple(rows), summary


def _build_summary(
    params: LoanParams,
    rows: List[ScheduleRow],
    principal: Decimal,
    total_interest: Decimal,
    balance: Decimal,
) -> Summary:
    installments = [r for r in rows if isinstance(r, InstallmentRow)]
    payoff_date = next(
        (r.actual_date for r in installments if r.outstanding_balance <= EPSILON),
        rows[-1].actual_date,
    )
    # Cash actually paid: installments plus the applied part of repayments
    total_paid = sum((r.total for r in rows if not isinstance(r, SegmentRow)), ZERO)
    return Summary(
        total_principal=principal,
        total_interest=total_interest,
        total_paid=total_paid,
        payoff_date=payoff_date,
        status=ScheduleStatus.PAID_OFF if balance == 0 else ScheduleStatus.NON_CONVERGENT,
        outstanding_balance=balance,
        installments=len(installments),
        final_payment=installments[-1].total,
        nominal_end_date=add_months(params.start_date, params.tenure_months),
    )
