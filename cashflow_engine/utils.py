from __future__ import annotations

import pandas as pd
from datetime import date
from enum import Enum
from typing import List, Union


class DayCountConv(str, Enum):
    ACT_365 = "ACT/365"
    ACT_360 = "ACT/360"
    THIRTY_360 = "30/360"
    THIRTY_E_360 = "30E/360"
    ACT_ACT_ISDA = "ACT/ACT"

    @classmethod
    def parse(cls, convention: Union[str, "DayCountConv"]) -> "DayCountConv":
        if isinstance(convention, DayCountConv):
            return convention
        key = str(convention).upper().replace(" ", "")
        aliases = {
            "ACT/365F": cls.ACT_365,
            "ACT/365FIXED": cls.ACT_365,
            "30/360US": cls.THIRTY_360,
            "30/360BONDBASIS": cls.THIRTY_360,
            "ACT/ACTISDA": cls.ACT_ACT_ISDA,
        }
        if key in aliases:
            return aliases[key]
        for conv in cls:
            if conv.value == key:
                return conv
        raise ValueError(f"Unsupported day count convention: {convention}")


def year_fraction(
    start: Union[date, pd.Timestamp],
    end: Union[date, pd.Timestamp],
    convention: Union[str, DayCountConv],
) -> float:
    """
    Year fraction between two dates under a day count convention.

    Supported:
    - ACT/365 (fixed), ACT/360
    - 30/360 (US bond basis), 30E/360 (Eurobond basis)
    - ACT/ACT ISDA
    """
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)
    conv = DayCountConv.parse(convention)

    if end < start:
        raise ValueError(f"end < start: {start=} {end=}")

    if conv == DayCountConv.ACT_365:
        return (end - start).days / 365.0

    if conv == DayCountConv.ACT_360:
        return (end - start).days / 360.0

    if conv in (DayCountConv.THIRTY_360, DayCountConv.THIRTY_E_360):
        y1, m1, d1 = start.year, start.month, start.day
        y2, m2, d2 = end.year, end.month, end.day

        if conv == DayCountConv.THIRTY_360:
            if d1 == 31:
                d1 = 30
            if d2 == 31 and d1 == 30:
                d2 = 30
        else:
            d1 = min(d1, 30)
            d2 = min(d2, 30)

        return ((y2 - y1) * 360 + (m2 - m1) * 30 + (d2 - d1)) / 360.0

    # ACT/ACT ISDA: days in each calendar year over that year's length
    if start.year == end.year:
        return (end - start).days / (366.0 if start.is_leap_year else 365.0)

    first_end = pd.Timestamp(year=start.year + 1, month=1, day=1)
    last_start = pd.Timestamp(year=end.year, month=1, day=1)
    frac = (first_end - start).days / (366.0 if start.is_leap_year else 365.0)
    frac += end.year - start.year - 1
    frac += (end - last_start).days / (366.0 if end.is_leap_year else 365.0)
    return frac


def previous_coupon_date(settle: pd.Timestamp, maturity: pd.Timestamp, freq: int = 2) -> pd.Timestamp:
    """
    Most recent coupon date on or before settlement, schedule anchored at maturity.
    """
    if freq <= 0:
        raise ValueError("freq must be positive")

    months = int(12 / freq)
    d = pd.Timestamp(maturity)
    settle = pd.Timestamp(settle)

    n = 0
    while d > settle:
        n += 1
        d = pd.Timestamp(maturity) - pd.DateOffset(months=months * n)
    return d


def next_coupon_date(settle: pd.Timestamp, maturity: pd.Timestamp, freq: int = 2) -> pd.Timestamp:
    """Next coupon date strictly after settlement."""
    settle = pd.Timestamp(settle)
    maturity = pd.Timestamp(maturity)
    months = int(12 / freq)

    n = 0
    d = maturity
    while d - pd.DateOffset(months=months * (n + 1)) > settle:
        n += 1
    return maturity - pd.DateOffset(months=months * n)


def coupon_schedule_after_settlement(
    settle: pd.Timestamp,
    maturity: pd.Timestamp,
    freq: int = 2,
) -> List[pd.Timestamp]:
    """All coupon payment dates strictly after settlement, ending at maturity."""
    settle = pd.Timestamp(settle)
    maturity = pd.Timestamp(maturity)

    if settle >= maturity:
        return []

    months = int(12 / freq)
    dates: List[pd.Timestamp] = []
    n = 0
    d = maturity
    while d > settle:
        dates.append(d)
        n += 1
        d = maturity - pd.DateOffset(months=months * n)

    return sorted(dates)


def accrued_interest(
    settle: pd.Timestamp,
    maturity: pd.Timestamp,
    coupon_rate: float,
    face: float,
    freq: int,
    day_count: Union[str, DayCountConv],
) -> float:
    """
    Accrued interest in currency units (not per 100).
    """
    settle = pd.Timestamp(settle)
    maturity = pd.Timestamp(maturity)

    if settle >= maturity:
        return 0.0

    t_prev = previous_coupon_date(settle, maturity, freq)
    t_next = next_coupon_date(settle, maturity, freq)

    accrual_num = year_fraction(t_prev, settle, day_count)
    accrual_den = year_fraction(t_prev, t_next, day_count)

    if accrual_den <= 0:
        raise ValueError("Invalid coupon period length from schedule/daycount.")

    coupon_per_period = face * (coupon_rate / freq)
    return coupon_per_period * (accrual_num / accrual_den)
