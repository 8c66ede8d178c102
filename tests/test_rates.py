from datetime import date
from decimal import Decimal

from loan_ledger.data_models import RateInterval
from loan_ledger.rates import RateTable, effective_intervals, rate_on_date

INITIAL = Decimal("5")


def test_no_intervals_uses_initial_rate():
    assert rate_on_date(date(2024, 5, 1), INITIAL, []) == INITIAL


def test_open_ended_interval_runs_until_next_start():
    intervals = [
        RateInterval(start_date=date(2024, 6, 1), rate=Decimal("6")),
        RateInterval(start_date=date(2024, 1, 1), rate=Decimal("4")),
    ]
    table = RateTable(INITIAL, intervals)
    assert table.rate_on(date(2023, 12, 31)) == INITIAL
    assert table.rate_on(date(2024, 1, 1)) == Decimal("4")
    assert table.rate_on(date(2024, 5, 31)) == Decimal("4")
    assert table.rate_on(date(2024, 6, 1)) == Decimal("6")
    assert table.rate_on(date(2040, 1, 1)) == Decimal("6")


def test_explicit_end_falls_back_to_initial_rate():
    intervals = [
        RateInterval(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31), rate=Decimal("7")),
    ]
    assert rate_on_date(date(2024, 3, 31), INITIAL, intervals) == Decimal("7")
    assert rate_on_date(date(2024, 4, 1), INITIAL, intervals) == INITIAL


def test_overlapping_intervals_prefer_latest_start():
    intervals = [
        RateInterval(start_date=date(2024, 1, 1), end_date=date(2024, 12, 31), rate=Decimal("4")),
        RateInterval(start_date=date(2024, 6, 1), end_date=date(2024, 6, 30), rate=Decimal("9")),
    ]
    table = RateTable(INITIAL, intervals)
    assert table.rate_on(date(2024, 6, 15)) == Decimal("9")
    assert table.rate_on(date(2024, 7, 1)) == Decimal("4")


def test_effective_intervals_derive_missing_ends():
    intervals = [
        RateInterval(start_date=date(2024, 4, 1), rate=Decimal("7")),
        RateInterval(start_date=date(2024, 1, 1), rate=Decimal("4")),
        RateInterval(start_date=date(2024, 2, 1), end_date=date(2024, 2, 15), rate=Decimal("6")),
    ]
    assert effective_intervals(intervals) == [
        (date(2024, 1, 1), date(2024, 1, 31), Decimal("4")),
        (date(2024, 2, 1), date(2024, 2, 15), Decimal("6")),
        (date(2024, 4, 1), None, Decimal("7")),
    ]
