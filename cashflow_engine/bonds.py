from __future__ import annotations

import pandas as pd
from dataclasses import dataclass
from datetime import date
from typing import List

from .cash_flows import CashFlow
from .currency import Currency
from .fixed_income import FixedIncome
from .utils import DayCountConv, accrued_interest, coupon_schedule_after_settlement

SUPPORTED_FREQS = (1, 2, 4, 12)


@dataclass(frozen=True)
class FixedRateBond(FixedIncome):
    """
    Plain fixed coupon bond. Coupon dates step back from maturity in
    12/freq month periods; the first coupon is the first date after issue.
    """
    bond_id: str
    currency: Currency
    issue_date: date
    maturity: date
    coupon_rate: float
    freq: int = 2
    day_count: str = "30/360"
    denomination: float = 100.0

    def validate(self) -> None:
        if pd.Timestamp(self.issue_date) >= pd.Timestamp(self.maturity):
            raise ValueError(f"{self.bond_id}: maturity must be after issue date.")
        if self.freq not in SUPPORTED_FREQS:
            raise ValueError(f"{self.bond_id}: supported frequencies are {SUPPORTED_FREQS}.")
        if not (-0.01 <= self.coupon_rate <= 0.25):
            raise ValueError(f"{self.bond_id}: coupon out of plausible range.")
        DayCountConv.parse(self.day_count)

    def coupon_dates(self) -> List[date]:
        self.validate()
        pay_dates = coupon_schedule_after_settlement(self.issue_date, self.maturity, self.freq)
        return [pd.Timestamp(d).date() for d in pay_dates]

    def rollout_cash_flows(self, position: float, market=None) -> List[CashFlow]:
        pay_dates = self.coupon_dates()
        if len(pay_dates) == 0:
            raise ValueError(f"{self.bond_id}: no cash flows after issue.")

        notional = position * self.denomination
        coupon_cf = notional * (self.coupon_rate / self.freq)

        cash_flows = [CashFlow.new(coupon_cf, self.currency, d) for d in pay_dates]
        cash_flows[-1].amount.amount += notional
        return cash_flows

    def accrued_interest(self, today: date) -> float:
        """Accrued interest per unit, in currency (not per 100)."""
        self.validate()
        if pd.Timestamp(today) <= pd.Timestamp(self.issue_date):
            return 0.0
        return accrued_interest(
            today, self.maturity, self.coupon_rate, self.denomination, self.freq, self.day_count
        )
