from __future__ import annotations

import numpy as np
import pandas as pd
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

from .config import CASH_FLOW_TOL, DEFAULT_ROUNDING_DIGITS
from .currency import Currency, QuoteSource


def round2digits(x: Union[float, np.ndarray], digits: int) -> Union[float, np.ndarray]:
    """
    Round to ``digits`` decimals, halves away from zero (2.5 -> 3, -2.5 -> -3).

    Works element-wise on arrays.
    """
    scale = 10.0 ** digits
    scaled = np.asarray(x, dtype=float) * scale
    out = np.sign(scaled) * np.floor(np.abs(scaled) + 0.5) / scale
    if np.ndim(out) == 0:
        return float(out)
    return out


@dataclass
class CashAmount:
    """
    Amount of money in some currency.

    Arithmetic mutates the instance and returns it, so calls can be chained:
    ``total.add(a, t, quotes).sub(b, t, quotes)``. The result always stays in
    this instance's currency; foreign amounts are converted first.
    """
    amount: float
    currency: Currency

    def _combine(
        self,
        other: "CashAmount",
        sign: float,
        time: datetime,
        quotes: QuoteSource,
        with_rounding: bool,
    ) -> "CashAmount":
        if self.currency == other.currency:
            self.amount += sign * other.amount
            return self

        fx_rate = quotes.fx_rate(other.currency, self.currency, time)
        self.amount += sign * fx_rate * other.amount
        if with_rounding:
            digits = quotes.rounding_digits(self.currency)
            self.amount = round2digits(self.amount, digits)
        return self

    def add(
        self,
        other: "CashAmount",
        time: datetime,
        quotes: QuoteSource,
        with_rounding: bool = False,
    ) -> "CashAmount":
        return self._combine(other, 1.0, time, quotes, with_rounding)

    def add_opt(
        self,
        other: Optional["CashAmount"],
        time: datetime,
        quotes: QuoteSource,
        with_rounding: bool = False,
    ) -> "CashAmount":
        if other is None:
            return self
        return self.add(other, time, quotes, with_rounding)

    def sub(
        self,
        other: "CashAmount",
        time: datetime,
        quotes: QuoteSource,
        with_rounding: bool = False,
    ) -> "CashAmount":
        return self._combine(other, -1.0, time, quotes, with_rounding)

    def sub_opt(
        self,
        other: Optional["CashAmount"],
        time: datetime,
        quotes: QuoteSource,
        with_rounding: bool = False,
    ) -> "CashAmount":
        if other is None:
            return self
        return self.sub(other, time, quotes, with_rounding)

    def round(self, digits: int) -> "CashAmount":
        return CashAmount(round2digits(self.amount, digits), self.currency)

    def round_by_convention(self, rounding_conventions: Dict[str, int]) -> "CashAmount":
        """Round to the digits configured for this currency, 2 if not configured."""
        digits = rounding_conventions.get(str(self.currency), DEFAULT_ROUNDING_DIGITS)
        return self.round(digits)

    def __neg__(self) -> "CashAmount":
        return CashAmount(-self.amount, self.currency)

    def __str__(self) -> str:
        return f"{self.amount:16.4f} {self.currency}"


@dataclass
class CashFlow:
    amount: CashAmount
    date: date

    @classmethod
    def new(cls, amount: float, currency: Currency, date: date) -> "CashFlow":
        return cls(CashAmount(amount, currency), date)

    def aggregatable(self, cf: "CashFlow") -> bool:
        """Same currency and same date."""
        return self.amount.currency == cf.amount.currency and self.date == cf.date

    def fuzzy_cash_flows_cmp_eq(self, cf: "CashFlow", tol: float = CASH_FLOW_TOL) -> bool:
        if not self.aggregatable(cf):
            return False
        a, b = self.amount.amount, cf.amount.amount
        if np.isnan(a) or np.isnan(b):
            return False
        return abs(a - b) <= tol

    def __neg__(self) -> "CashFlow":
        return CashFlow(-self.amount, self.date)

    def __str__(self) -> str:
        return f"{self.date} {self.amount}"


def get_cash_flows_after(cash_flows: Iterable[CashFlow], date: date) -> List[CashFlow]:
    """All cash flows strictly after ``date``, in input order."""
    return [cf for cf in cash_flows if cf.date > date]


def cash_flow_table(cash_flows: Iterable[CashFlow]) -> pd.DataFrame:
    rows = [(pd.Timestamp(cf.date), float(cf.amount.amount), str(cf.amount.currency)) for cf in cash_flows]
    return pd.DataFrame(rows, columns=["date", "amount", "currency"])


def aggregate_cash_flows(cash_flows: Iterable[CashFlow]) -> List[CashFlow]:
    """
    Sum up aggregatable cash flows (same currency, same date).

    Returns one flow per (date, currency), ordered by date then currency code.
    """
    cash_flows = list(cash_flows)
    if not cash_flows:
        return []

    currencies = {str(cf.amount.currency): cf.amount.currency for cf in cash_flows}
    cf = cash_flow_table(cash_flows)
    summed = cf.groupby(["date", "currency"], as_index=False)["amount"].sum()
    summed = summed.sort_values(["date", "currency"]).reset_index(drop=True)

    return [
        CashFlow.new(float(r["amount"]), currencies[r["currency"]], pd.Timestamp(r["date"]).date())
        for _, r in summed.iterrows()
    ]
