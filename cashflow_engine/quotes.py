"""
Quote storage and market data interfaces.

Persistence and market data retrieval live outside the engine. This module
defines the contracts the engine relies on, plus an in-memory quote store
backed by pandas, used for testing and for small offline workflows.
"""
from __future__ import annotations

import logging
import pandas as pd
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .config import DEFAULT_ROUNDING_DIGITS
from .currency import Currency, QuoteSource
from .exceptions import ConversionFailed, InsertFailed, NotFound

logger = logging.getLogger(__name__)

QUOTE_COLUMNS = ["id", "ticker", "price", "time", "volume"]


@dataclass(frozen=True)
class Ticker:
    name: str
    asset: str
    source: str
    currency: Currency
    priority: int = 10
    factor: float = 1.0
    id: Optional[int] = None
    tz: Optional[str] = None
    cal: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    ticker: int
    price: float
    time: datetime
    volume: Optional[float] = None
    id: Optional[int] = None


def fx_asset_name(foreign: Currency, domestic: Currency) -> str:
    return f"{foreign}/{domestic}"


class QuoteHandler(QuoteSource):
    """Storage for tickers, quotes and rounding conventions."""

    @abstractmethod
    def insert_ticker(self, ticker: Ticker) -> int:
        ...

    @abstractmethod
    def get_ticker_id(self, name: str) -> Optional[int]:
        ...

    def insert_if_new_ticker(self, ticker: Ticker) -> int:
        ticker_id = self.get_ticker_id(ticker.name)
        if ticker_id is not None:
            return ticker_id
        return self.insert_ticker(ticker)

    @abstractmethod
    def get_ticker_by_id(self, ticker_id: int) -> Ticker:
        ...

    @abstractmethod
    def get_all_ticker_for_source(self, source: str) -> List[Ticker]:
        ...

    @abstractmethod
    def update_ticker(self, ticker: Ticker) -> None:
        ...

    @abstractmethod
    def delete_ticker(self, ticker_id: int) -> None:
        ...

    @abstractmethod
    def insert_quote(self, quote: Quote) -> int:
        ...

    @abstractmethod
    def get_last_quote_before(self, asset: str, time: datetime) -> Tuple[Quote, Currency]:
        """Latest quote for ``asset`` at or before ``time`` and the ticker's currency."""

    @abstractmethod
    def get_all_quotes_for_ticker(self, ticker_id: int) -> List[Quote]:
        ...

    @abstractmethod
    def update_quote(self, quote: Quote) -> None:
        ...

    @abstractmethod
    def delete_quote(self, quote_id: int) -> None:
        ...

    @abstractmethod
    def remove_duplicates(self) -> None:
        """Drop quotes repeating ticker, time and price of an earlier one."""

    @abstractmethod
    def set_rounding_digits(self, currency: Currency, digits: int) -> None:
        ...

    def fx_rate(self, foreign_currency: Currency, domestic_currency: Currency, time: datetime) -> float:
        """
        Price of one unit of foreign currency in domestic currency.

        Looks for a FOREIGN/DOMESTIC quote first, then inverts a
        DOMESTIC/FOREIGN quote.
        """
        if foreign_currency == domestic_currency:
            return 1.0

        try:
            quote, _ = self.get_last_quote_before(fx_asset_name(foreign_currency, domestic_currency), time)
            logger.debug("fx %s/%s at %s: %s", foreign_currency, domestic_currency, time, quote.price)
            return quote.price
        except NotFound:
            pass

        try:
            quote, _ = self.get_last_quote_before(fx_asset_name(domestic_currency, foreign_currency), time)
        except NotFound as e:
            raise ConversionFailed(
                f"No quote for {foreign_currency}/{domestic_currency} on or before {time}"
            ) from e

        if quote.price == 0.0:
            raise ConversionFailed(f"Zero quote for {domestic_currency}/{foreign_currency} at {quote.time}")
        logger.debug("fx %s/%s at %s: 1/%s", foreign_currency, domestic_currency, time, quote.price)
        return 1.0 / quote.price

    def insert_fx_quote(self, fx_rate: float, foreign: Currency, domestic: Currency, time: datetime) -> int:
        """Store the price of one unit of ``foreign`` in ``domestic``."""
        name = fx_asset_name(foreign, domestic)
        ticker_id = self.insert_if_new_ticker(
            Ticker(name=name, asset=name, source="manual", currency=domestic, priority=1)
        )
        return self.insert_quote(Quote(ticker=ticker_id, price=fx_rate, time=time))


class InMemoryQuoteHandler(QuoteHandler):
    """Quote store keeping tickers in a dict and quotes in a DataFrame."""

    def __init__(self):
        self._tickers: Dict[int, Ticker] = {}
        self._quotes = pd.DataFrame(columns=QUOTE_COLUMNS)
        self._rounding: Dict[str, int] = {}
        self._next_ticker_id = 1
        self._next_quote_id = 1

    # ---- tickers ----

    def insert_ticker(self, ticker: Ticker) -> int:
        if self.get_ticker_id(ticker.name) is not None:
            raise InsertFailed(f"Ticker {ticker.name!r} already exists.")
        ticker_id = self._next_ticker_id
        self._next_ticker_id += 1
        self._tickers[ticker_id] = replace(ticker, id=ticker_id)
        return ticker_id

    def get_ticker_id(self, name: str) -> Optional[int]:
        for ticker_id, t in self._tickers.items():
            if t.name == name:
                return ticker_id
        return None

    def get_ticker_by_id(self, ticker_id: int) -> Ticker:
        try:
            return self._tickers[ticker_id]
        except KeyError:
            raise NotFound(f"No ticker with id {ticker_id}") from None

    def get_all_ticker_for_source(self, source: str) -> List[Ticker]:
        return [t for t in self._tickers.values() if t.source == source]

    def update_ticker(self, ticker: Ticker) -> None:
        if ticker.id is None or ticker.id not in self._tickers:
            raise NotFound("not yet stored to database")
        self._tickers[ticker.id] = ticker

    def delete_ticker(self, ticker_id: int) -> None:
        self._tickers.pop(ticker_id, None)
        self._quotes = self._quotes[self._quotes["ticker"] != ticker_id].reset_index(drop=True)

    # ---- quotes ----

    def insert_quote(self, quote: Quote) -> int:
        if quote.ticker not in self._tickers:
            raise InsertFailed(f"Unknown ticker id {quote.ticker}")
        quote_id = self._next_quote_id
        self._next_quote_id += 1
        row = pd.DataFrame(
            [[quote_id, quote.ticker, float(quote.price), pd.Timestamp(quote.time), quote.volume]],
            columns=QUOTE_COLUMNS,
        )
        self._quotes = row if self._quotes.empty else pd.concat([self._quotes, row], ignore_index=True)
        return quote_id

    @staticmethod
    def _to_quote(r) -> Quote:
        volume = None if pd.isna(r["volume"]) else float(r["volume"])
        return Quote(
            ticker=int(r["ticker"]),
            price=float(r["price"]),
            time=pd.Timestamp(r["time"]).to_pydatetime(),
            volume=volume,
            id=int(r["id"]),
        )

    def get_last_quote_before(self, asset: str, time: datetime) -> Tuple[Quote, Currency]:
        tickers = {tid: t for tid, t in self._tickers.items() if t.asset == asset}
        if not tickers or self._quotes.empty:
            raise NotFound(f"No quotes for {asset!r}")

        q = self._quotes[self._quotes["ticker"].isin(list(tickers))].copy()
        q = q[q["time"] <= pd.Timestamp(time)]
        if q.empty:
            raise NotFound(f"No quote for {asset!r} on or before {time}")

        q["priority"] = q["ticker"].map(lambda tid: tickers[tid].priority)
        q = q.sort_values(["time", "priority"], ascending=[False, True])
        quote = self._to_quote(q.iloc[0])
        return quote, tickers[quote.ticker].currency

    def get_all_quotes_for_ticker(self, ticker_id: int) -> List[Quote]:
        q = self._quotes[self._quotes["ticker"] == ticker_id].sort_values("time")
        return [self._to_quote(r) for _, r in q.iterrows()]

    def update_quote(self, quote: Quote) -> None:
        if quote.id is None:
            raise NotFound("not yet stored to database")
        mask = self._quotes["id"] == quote.id
        if not mask.any():
            raise NotFound(f"No quote with id {quote.id}")
        idx = self._quotes.index[mask][0]
        self._quotes.loc[idx, ["ticker", "price", "time", "volume"]] = [
            quote.ticker, float(quote.price), pd.Timestamp(quote.time), quote.volume,
        ]

    def delete_quote(self, quote_id: int) -> None:
        self._quotes = self._quotes[self._quotes["id"] != quote_id].reset_index(drop=True)

    def remove_duplicates(self) -> None:
        self._quotes = (
            self._quotes.sort_values("id")
            .drop_duplicates(subset=["ticker", "time", "price"], keep="first")
            .reset_index(drop=True)
        )

    # ---- rounding conventions ----

    def rounding_digits(self, currency: Currency) -> int:
        return self._rounding.get(str(currency), DEFAULT_ROUNDING_DIGITS)

    def set_rounding_digits(self, currency: Currency, digits: int) -> None:
        self._rounding[str(currency)] = int(digits)


class MarketQuoteProvider(ABC):
    """Source of market quotes, e.g. a vendor API client."""

    @abstractmethod
    def fetch_latest_quote(self, ticker: Ticker) -> Quote:
        """Raises FetchFailed."""

    @abstractmethod
    def fetch_quote_history(self, ticker: Ticker, start: datetime, end: datetime) -> List[Quote]:
        """Quotes between ``start`` and ``end``. Raises FetchFailed."""
