from __future__ import annotations

import logging
import pandas as pd
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from .calendars import Calendar
from .exceptions import EmptySeries

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def local_date(time) -> date:
    """
    Calendar date of a timestamp. Naive timestamps are taken as local time;
    tz-aware ones are converted to the system's local time zone first.
    """
    if isinstance(time, pd.Timestamp):
        time = time.to_pydatetime()
    if isinstance(time, datetime):
        if time.tzinfo is not None:
            time = time.astimezone()
        return time.date()
    return time


@dataclass
class TimeValue:
    time: datetime
    value: float


@dataclass
class TimeSeries:
    title: str
    series: List[TimeValue] = field(default_factory=list)

    def min_max(self) -> Tuple[date, date, float, float]:
        """(earliest date, latest date, min value, max value)."""
        if not self.series:
            raise EmptySeries(self.title)

        dates = [local_date(tv.time) for tv in self.series]
        values = [tv.value for tv in self.series]
        return min(dates), max(dates), min(values), max(values)

    def find_gaps(self, cal: Calendar, today: Optional[date] = None) -> List[Tuple[date, date]]:
        """
        Runs of business days without an observation, from the earliest
        observation through ``today``.

        Each gap is (first missing day, last missing business day). A gap still
        open when the walk reaches ``today`` ends at ``today``. ``today``
        defaults to the local wall-clock date.
        """
        min_date, _, _, _ = self.min_max()
        if today is None:
            today = datetime.now().date()

        dates = {local_date(tv.time) for tv in self.series}

        gaps: List[Tuple[date, date]] = []
        gap_begin: Optional[date] = None
        d = min_date
        while d <= today:
            present = d in dates
            logger.debug("%s contains %s: %s", self.title, d, present)

            if gap_begin is None:
                if not present:
                    gap_begin = d
            elif present:
                gaps.append((gap_begin, cal.previous_business_day(d - ONE_DAY)))
                gap_begin = None

            if d >= today:
                break
            d = cal.next_business_day(d + ONE_DAY)

        if gap_begin is not None:
            gaps.append((gap_begin, today))

        return gaps

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"time": [tv.time for tv in self.series], "value": [float(tv.value) for tv in self.series]}
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, title: str, time_col: str = "time", value_col: str = "value") -> "TimeSeries":
        series = [TimeValue(r[time_col], float(r[value_col])) for _, r in df.iterrows()]
        return cls(title, series)
