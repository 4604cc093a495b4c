from datetime import date, datetime

import pytest

from cashflow_engine.calendars import (
    SATURDAY,
    SUNDAY,
    Calendar,
    SingularDay,
    WeekDay,
    YearlyDay,
    weekend_calendar,
)
from cashflow_engine.exceptions import CalendarRangeError


@pytest.fixture(scope="module")
def holidays():
    return [
        SingularDay(date(2021, 11, 4)),
        SingularDay(date(2021, 11, 5)),
        SingularDay(date(2021, 11, 8)),
        SATURDAY,
        SUNDAY,
    ]


@pytest.fixture(scope="module")
def cal(holidays):
    return Calendar.calc_calendar(holidays, 2021, 2022)


def test_is_business_day(cal):
    assert cal.is_business_day(date(2021, 11, 3))
    assert not cal.is_business_day(date(2021, 11, 4)), "Singular holiday"
    assert not cal.is_business_day(date(2021, 11, 6)), "Saturday"
    assert not cal.is_business_day(date(2021, 11, 7)), "Sunday"
    assert cal.is_business_day(datetime(2021, 11, 9, 20, 0))


def test_next_business_day(cal):
    assert cal.next_business_day(date(2021, 11, 9)) == date(2021, 11, 9)
    assert cal.next_business_day(date(2021, 11, 4)) == date(2021, 11, 9)
    assert cal.next_business_day(date(2021, 10, 30)) == date(2021, 11, 1)


def test_previous_business_day(cal):
    assert cal.previous_business_day(date(2021, 11, 3)) == date(2021, 11, 3)
    assert cal.previous_business_day(date(2021, 11, 8)) == date(2021, 11, 3)
    assert cal.previous_business_day(date(2021, 10, 31)) == date(2021, 10, 29)


def test_business_days(cal):
    assert cal.business_days(date(2021, 11, 1), date(2021, 11, 10)) == [
        date(2021, 11, 1),
        date(2021, 11, 2),
        date(2021, 11, 3),
        date(2021, 11, 9),
        date(2021, 11, 10),
    ]


def test_range(cal):
    assert cal.first_date == date(2021, 1, 1)
    assert cal.last_date == date(2022, 12, 31)

    with pytest.raises(CalendarRangeError):
        cal.is_business_day(date(2020, 12, 31))
    with pytest.raises(CalendarRangeError):
        cal.next_business_day(date(2023, 1, 2))
    # 2022-12-31 is a Saturday: nothing left to find inside the range
    with pytest.raises(CalendarRangeError):
        cal.next_business_day(date(2022, 12, 31))
    # 2021-01-01 is a Friday, 2021-01-02 a Saturday
    assert cal.previous_business_day(date(2021, 1, 2)) == date(2021, 1, 1)


def test_yearly_day():
    cal = Calendar.calc_calendar([YearlyDay(12, 24), SATURDAY, SUNDAY], 2021, 2022)
    assert not cal.is_business_day(date(2021, 12, 24))
    assert weekend_calendar(2021, 2021).is_business_day(date(2021, 12, 24))


def test_singular_days_outside_range_are_ignored():
    cal = Calendar.calc_calendar([SingularDay(date(2030, 1, 1))], 2021, 2021)
    assert cal.is_business_day(date(2021, 6, 5)), "No weekend rule given"


def test_invalid_rules():
    with pytest.raises(ValueError):
        WeekDay(7)
    with pytest.raises(ValueError):
        Calendar.calc_calendar([SATURDAY], 2022, 2021)
