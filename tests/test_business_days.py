from datetime import date

import pytest

from loan_ledger.business_days import is_holiday, shift_to_business_day
from loan_ledger.data_models import HolidayInterval, HolidayShift
from loan_ledger.errors import HolidayResolutionError

SPRING_FESTIVAL = HolidayInterval(date(2024, 2, 10), date(2024, 2, 17), "Spring Festival")


def test_is_holiday_is_union_of_intervals():
    holidays = [SPRING_FESTIVAL, HolidayInterval(date(2024, 1, 1), date(2024, 1, 1), "New Year")]
    assert is_holiday(date(2024, 1, 1), holidays)
    assert is_holiday(date(2024, 2, 10), holidays)
    assert is_holiday(date(2024, 2, 17), holidays)
    assert not is_holiday(date(2024, 2, 18), holidays)
    assert not is_holiday(date(2024, 1, 2), [])


def test_following_moves_past_the_interval():
    assert shift_to_business_day(date(2024, 2, 12), [SPRING_FESTIVAL], HolidayShift.FOLLOWING) == date(2024, 2, 18)


def test_preceding_moves_before_the_interval():
    assert shift_to_business_day(date(2024, 2, 12), [SPRING_FESTIVAL], HolidayShift.PRECEDING) == date(2024, 2, 9)


def test_adjacent_intervals_are_crossed():
    holidays = [SPRING_FESTIVAL, HolidayInterval(date(2024, 2, 18), date(2024, 2, 18), "Bridge day")]
    assert shift_to_business_day(date(2024, 2, 10), holidays, HolidayShift.FOLLOWING) == date(2024, 2, 19)


def test_business_day_is_unchanged():
    assert shift_to_business_day(date(2024, 3, 1), [SPRING_FESTIVAL], HolidayShift.PRECEDING) == date(2024, 3, 1)


def test_unbounded_holiday_range_raises():
    holidays = [HolidayInterval(date(2024, 1, 1), date(2060, 1, 1), "Closed")]
    with pytest.raises(HolidayResolutionError):
        shift_to_business_day(date(2024, 2, 1), holidays, HolidayShift.FOLLOWING, max_steps=10)
