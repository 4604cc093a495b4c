from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from .cash_flows import CashFlow
from .config import (
    DEFAULT_COMPOUNDING,
    DEFAULT_DAY_COUNT,
    YTM_LOWER_BOUND,
    YTM_MAX_ITER,
    YTM_TOL,
    YTM_UPPER_BOUND,
)
from .exceptions import MixedCurrencyCashFlows, NotConverged, YieldNotFound
from .rates import Compounding, FlatRate
from .solvers import BrentSolver, RootFinder
from .utils import DayCountConv

logger = logging.getLogger(__name__)


def calculate_cash_flows_ytm(
    cash_flows: Sequence[CashFlow],
    init_cash_flow: CashFlow,
    solver: Optional[RootFinder] = None,
    lower: float = YTM_LOWER_BOUND,
    upper: float = YTM_UPPER_BOUND,
    tol: float = YTM_TOL,
    max_iter: int = YTM_MAX_ITER,
) -> float:
    """
    Internal rate of return of a stream of cash flows.

    Finds the annual rate (ACT/365, annual compounding) for which the initial
    flow plus all later flows, discounted to the initial flow's date, sum to
    zero. Flows on or before that date are ignored. Notional payments at
    start and end are expected to be included by the caller.

    Raises
    ------
    MixedCurrencyCashFlows
        if any flow is in a different currency than ``init_cash_flow``.
    YieldNotFound
        if no root is bracketed by [lower, upper] or the solver does not converge.
    """
    currency = init_cash_flow.amount.currency
    for cf in cash_flows:
        if cf.amount.currency != currency:
            raise MixedCurrencyCashFlows(
                f"Cash flow on {cf.date} is in {cf.amount.currency}, expected {currency}"
            )

    if solver is None:
        solver = BrentSolver()

    today = init_cash_flow.date
    rate = FlatRate(0.05, DayCountConv.parse(DEFAULT_DAY_COUNT), Compounding(DEFAULT_COMPOUNDING), currency)

    def npv(r: float) -> float:
        return init_cash_flow.amount.amount + rate.with_rate(r).discounted_value(cash_flows, today).amount

    try:
        return solver.solve(npv, lower, upper, tol, max_iter)
    except NotConverged as e:
        logger.warning("yield not found for %d cash flows from %s: %s", len(cash_flows), today, e)
        raise YieldNotFound(str(e)) from e


class FixedIncome(ABC):
    """Instrument that can be rolled out into dated cash flows."""

    @abstractmethod
    def rollout_cash_flows(self, position: float, market=None) -> List[CashFlow]:
        """Cash flows of holding ``position`` units, ordered by date."""

    @abstractmethod
    def accrued_interest(self, today: date) -> float:
        """Accrued interest for the current coupon period."""

    def calculate_ytm(self, purchase_cash_flow: CashFlow, market=None) -> float:
        """Yield to maturity given the (negative) cash flow paid for one unit."""
        cash_flows = self.rollout_cash_flows(1.0, market)
        return calculate_cash_flows_ytm(cash_flows, purchase_cash_flow)
