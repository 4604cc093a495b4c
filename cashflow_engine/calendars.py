"""
Business day calendars.

A calendar is built once from a list of holiday rules over an explicit range of
years. All rules are evaluated up front into a boolean business-day mask, so
queries are plain array lookups. Dates outside the materialized range raise
CalendarRangeError; build the calendar wide enough for the dates you query
(for gap detection that means through the year after "today").
"""
from __future__ import annotations

import numpy as np
import pandas as pd
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Union

from .exceptions import CalendarRangeError


@dataclass(frozen=True)
class SingularDay:
    """One specific date."""
    day: date


@dataclass(frozen=True)
class WeekDay:
    """Every occurrence of a weekday, Monday=0 .. Sunday=6."""
    weekday: int

    def __post_init__(self):
        if not 0 <= self.weekday <= 6:
            raise ValueError(f"weekday must be in 0..6, got {self.weekday}")


@dataclass(frozen=True)
class YearlyDay:
    """Same month/day every year, e.g. Christmas."""
    month: int
    day: int


Holiday = Union[SingularDay, WeekDay, YearlyDay]

SATURDAY = WeekDay(5)
SUNDAY = WeekDay(6)


def _as_date(d) -> date:
    if hasattr(d, "date") and callable(d.date):
        return d.date()
    return d


class Calendar:
    def __init__(self, start: date, is_business_day: np.ndarray, holidays: Iterable[Holiday] = ()):
        self._start = np.datetime64(start, "D")
        self._mask = np.asarray(is_business_day, dtype=bool)
        self._mask.setflags(write=False)
        self.holidays = tuple(holidays)

    @classmethod
    def calc_calendar(cls, holidays: Iterable[Holiday], start_year: int, end_year: int) -> "Calendar":
        """Materialize ``holidays`` for Jan 1 of start_year through Dec 31 of end_year."""
        if end_year < start_year:
            raise ValueError(f"end_year < start_year: {start_year=} {end_year=}")

        holidays = list(holidays)
        days = pd.date_range(date(start_year, 1, 1), date(end_year, 12, 31), freq="D")
        mask = np.ones(len(days), dtype=bool)

        weekdays = days.weekday.values
        months = days.month.values
        mdays = days.day.values
        start = np.datetime64(date(start_year, 1, 1), "D")

        for h in holidays:
            if isinstance(h, WeekDay):
                mask &= weekdays != h.weekday
            elif isinstance(h, YearlyDay):
                mask &= ~((months == h.month) & (mdays == h.day))
            elif isinstance(h, SingularDay):
                idx = int((np.datetime64(_as_date(h.day), "D") - start).astype(int))
                if 0 <= idx < len(mask):
                    mask[idx] = False
            else:
                raise TypeError(f"Unknown holiday rule: {h!r}")

        return cls(date(start_year, 1, 1), mask, holidays)

    @property
    def first_date(self) -> date:
        return self._start.astype(date)

    @property
    def last_date(self) -> date:
        return (self._start + np.timedelta64(len(self._mask) - 1, "D")).astype(date)

    def _index(self, d) -> int:
        d = _as_date(d)
        idx = int((np.datetime64(d, "D") - self._start).astype(int))
        if not 0 <= idx < len(self._mask):
            raise CalendarRangeError(
                f"{d} outside calendar range [{self.first_date}, {self.last_date}]"
            )
        return idx

    def _date(self, idx: int) -> date:
        return (self._start + np.timedelta64(idx, "D")).astype(date)

    def is_business_day(self, d) -> bool:
        return bool(self._mask[self._index(d)])

    def next_business_day(self, d) -> date:
        """``d`` if it is a business day, otherwise the first business day after it."""
        idx = self._index(d)
        ahead = np.flatnonzero(self._mask[idx:])
        if len(ahead) == 0:
            raise CalendarRangeError(f"No business day on or after {_as_date(d)} before {self.last_date}")
        return self._date(idx + int(ahead[0]))

    def previous_business_day(self, d) -> date:
        """``d`` if it is a business day, otherwise the last business day before it."""
        idx = self._index(d)
        behind = np.flatnonzero(self._mask[: idx + 1])
        if len(behind) == 0:
            raise CalendarRangeError(f"No business day on or before {_as_date(d)} after {self.first_date}")
        return self._date(int(behind[-1]))

    def business_days(self, start, end) -> List[date]:
        """All business days in [start, end]."""
        i, j = self._index(start), self._index(end)
        return [self._date(int(k)) for k in np.flatnonzero(self._mask[i: j + 1]) + i]


def weekend_calendar(start_year: int, end_year: int) -> Calendar:
    """Calendar with Saturdays and Sundays as the only holidays."""
    return Calendar.calc_calendar([SATURDAY, SUNDAY], start_year, end_year)

