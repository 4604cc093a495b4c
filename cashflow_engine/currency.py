from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from .config import DEFAULT_ROUNDING_DIGITS, ZERO_DIGIT_CURRENCIES
from .exceptions import InvalidCurrencyCharacter, InvalidCurrencyLength


def default_rounding_digits(code: str) -> int:
    return 0 if code.upper() in ZERO_DIGIT_CURRENCIES else DEFAULT_ROUNDING_DIGITS


@dataclass(frozen=True)
class Currency:
    """
    ISO-style currency: three uppercase ASCII letters plus the number of
    decimals amounts in this currency are usually rounded to.

    Equality and hashing use the code only.
    """
    code: str
    rounding_digits: int = field(default=DEFAULT_ROUNDING_DIGITS, compare=False)

    def __post_init__(self):
        code = []
        for c in str(self.code):
            if len(code) >= 3:
                raise InvalidCurrencyLength(self.code)
            if not (c.isascii() and c.isalpha()):
                raise InvalidCurrencyCharacter(self.code)
            code.append(c.upper())

        if len(code) != 3:
            raise InvalidCurrencyLength(self.code)
        object.__setattr__(self, "code", "".join(code))

    @classmethod
    def from_str(cls, curr: str) -> "Currency":
        """Validated currency with the default rounding digits for its code."""
        return cls(curr, default_rounding_digits(str(curr)))

    def __str__(self) -> str:
        return self.code


def parse_currency(curr: str) -> Currency:
    """Parse a currency code, case-insensitive."""
    return Currency.from_str(curr)


class CurrencyConverter(ABC):
    """Source of FX rates."""

    @abstractmethod
    def fx_rate(self, foreign_currency: Currency, domestic_currency: Currency, time: datetime) -> float:
        """
        Price of one unit of ``foreign_currency`` in terms of ``domestic_currency``,
        using the latest quote on or before ``time``.

        Raises ConversionFailed if no such quote exists.
        """


class RoundingConventions(ABC):
    """Source of per-currency rounding digits."""

    @abstractmethod
    def rounding_digits(self, currency: Currency) -> int:
        """Number of decimals for ``currency``; 2 if nothing is configured."""


class QuoteSource(CurrencyConverter, RoundingConventions):
    """Anything that provides both FX rates and rounding conventions."""
