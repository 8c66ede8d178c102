from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from loan_ledger.data_models import AdjustmentStrategy, InstallmentRow, LoanParams, SegmentRow

TOLERANCE = Decimal("0.000001")


@pytest.fixture
def params():
    """100000 at 5% for 12 months from 2024-01-01, variable installment."""
    return LoanParams(
        principal=Decimal("100000"),
        initial_rate=Decimal("5"),
        tenure_months=12,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def tenure_params(params):
    return replace(params, strategy=AdjustmentStrategy.VARIABLE_TENURE)


def installments(rows):
    return [r for r in rows if isinstance(r, InstallmentRow)]


def segments(rows, period=None):
    return [r for r in rows if isinstance(r, SegmentRow) and (period is None or r.period == period)]
