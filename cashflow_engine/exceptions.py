"""
Error hierarchy.

Every failure raised by the engine is a value-level error: callers catch it,
report it and carry on. All classes derive from ValueError so code that
already guards numeric input with ``except ValueError`` keeps working.
"""
from __future__ import annotations


class CashflowEngineError(ValueError):
    """Base class for all engine errors."""


# ---- currencies ----

class CurrencyError(CashflowEngineError):
    pass


class InvalidCurrencyFormat(CurrencyError):
    pass


class InvalidCurrencyLength(InvalidCurrencyFormat):
    def __init__(self, code: str):
        super().__init__(f"currency codes must consist of exactly three characters: {code!r}")
        self.code = code


class InvalidCurrencyCharacter(InvalidCurrencyFormat):
    def __init__(self, code: str):
        super().__init__(f"currency codes must contain only alphabetic ASCII characters: {code!r}")
        self.code = code


class ConversionFailed(CurrencyError):
    """No FX quote available on or before the requested time."""


# ---- time series / calendars ----

class TimeSeriesError(CashflowEngineError):
    pass


class EmptySeries(TimeSeriesError):
    def __init__(self, title: str = ""):
        super().__init__(f"Time series {title!r} is empty.")
        self.title = title


class CalendarRangeError(CashflowEngineError):
    """Date lies outside the span a calendar was materialized for."""


# ---- discounting / yield ----

class DiscountingFailed(CashflowEngineError):
    pass


class MixedCurrencyCashFlows(DiscountingFailed):
    pass


class NotConverged(CashflowEngineError):
    """Root finder could not bracket a root or ran out of iterations."""


class YieldNotFound(CashflowEngineError):
    pass


# ---- external collaborators ----

class DataError(CashflowEngineError):
    pass


class NotFound(DataError):
    pass


class InsertFailed(DataError):
    pass


class MarketQuoteError(CashflowEngineError):
    pass


class FetchFailed(MarketQuoteError):
    pass
