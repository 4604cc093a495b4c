from __future__ import annotations

import numpy as np
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Iterable, Union

from .cash_flows import CashAmount, CashFlow
from .config import DEFAULT_COMPOUNDING, DEFAULT_DAY_COUNT
from .currency import Currency
from .exceptions import DiscountingFailed
from .utils import DayCountConv, year_fraction


class Compounding(str, Enum):
    SIMPLE = "simple"
    ANNUAL = "annual"
    SEMI_ANNUAL = "semiannual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"
    CONTINUOUS = "continuous"

    @property
    def periods_per_year(self) -> int:
        return {
            Compounding.ANNUAL: 1,
            Compounding.SEMI_ANNUAL: 2,
            Compounding.QUARTERLY: 4,
            Compounding.MONTHLY: 12,
        }.get(self, 0)

    def discount_factor(self, rate: float, yf: float) -> float:
        """
        Discount factor for ``rate`` over a year fraction ``yf``.

        - simple:      1 / (1 + r*t)
        - periodic:    (1 + r/n)^(-n*t)
        - continuous:  exp(-r*t)
        """
        if self == Compounding.CONTINUOUS:
            df = np.exp(-rate * yf)
        elif self == Compounding.SIMPLE:
            base = 1.0 + rate * yf
            if base <= 0.0:
                raise DiscountingFailed(f"Simple compounding undefined for rate={rate}, t={yf}")
            df = 1.0 / base
        else:
            n = self.periods_per_year
            base = 1.0 + rate / n
            if base <= 0.0:
                raise DiscountingFailed(f"{self.value} compounding undefined for rate={rate}")
            with np.errstate(over="ignore"):
                df = np.power(base, -n * yf)

        df = float(df)
        if not np.isfinite(df):
            raise DiscountingFailed(f"Non-finite discount factor for rate={rate}, t={yf}")
        return df


@dataclass(frozen=True)
class FlatRate:
    """Single constant rate used to discount cash flows in one currency."""
    rate: float
    day_count: DayCountConv
    compounding: Compounding
    currency: Currency

    def __post_init__(self):
        object.__setattr__(self, "day_count", DayCountConv.parse(self.day_count))
        object.__setattr__(self, "compounding", Compounding(self.compounding))

    def with_rate(self, rate: float) -> "FlatRate":
        return replace(self, rate=float(rate))

    def discount_factor(self, today: date, pay_date: date) -> float:
        yf = year_fraction(today, pay_date, self.day_count)
        return self.compounding.discount_factor(self.rate, yf)

    def discount_cash_flow(self, cash_flow: CashFlow, today: date) -> CashAmount:
        """
        Present value of ``cash_flow`` as of ``today``.

        Flows paid before ``today`` are worth nothing. The flow must be in the
        rate's currency; convert beforehand.
        """
        if cash_flow.amount.currency != self.currency:
            raise DiscountingFailed(
                f"Cash flow currency {cash_flow.amount.currency} does not match rate currency {self.currency}"
            )
        if cash_flow.date < today:
            return CashAmount(0.0, self.currency)

        df = self.discount_factor(today, cash_flow.date)
        return CashAmount(cash_flow.amount.amount * df, self.currency)

    def discounted_value(self, cash_flows: Iterable[CashFlow], today: date) -> CashAmount:
        """Sum of present values of all flows strictly after ``today``."""
        total = 0.0
        for cf in cash_flows:
            if cf.date > today:
                total += self.discount_cash_flow(cf, today).amount
        return CashAmount(total, self.currency)


def flat_rate(
    rate: float,
    currency: Currency,
    day_count: Union[str, DayCountConv] = DEFAULT_DAY_COUNT,
    compounding: Union[str, Compounding] = DEFAULT_COMPOUNDING,
) -> FlatRate:
    return FlatRate(rate, DayCountConv.parse(day_count), Compounding(compounding), currency)
