from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Dict, List, Optional, Tuple

from .calendars import Calendar
from .exceptions import FetchFailed, NotFound
from .quotes import MarketQuoteProvider, QuoteHandler
from .time_series import TimeSeries, TimeValue

logger = logging.getLogger(__name__)


@dataclass
class Market:
    """Quote store and calendars handed to cash flow producers and updaters."""
    quotes: QuoteHandler
    calendars: Dict[str, Calendar] = field(default_factory=dict)

    def get_calendar(self, name: str) -> Calendar:
        try:
            return self.calendars[name]
        except KeyError:
            raise NotFound(f"Unknown calendar {name!r}") from None

    def quote_series(self, ticker_id: int) -> TimeSeries:
        ticker = self.quotes.get_ticker_by_id(ticker_id)
        quotes = self.quotes.get_all_quotes_for_ticker(ticker_id)
        return TimeSeries(ticker.name, [TimeValue(q.time, q.price) for q in quotes])

    def update_quote_history(
        self,
        ticker_id: int,
        provider: MarketQuoteProvider,
        calendar_name: str,
        today: Optional[date] = None,
    ) -> int:
        """
        Fill the gaps in a ticker's stored quote history from ``provider``.

        Returns the number of quotes inserted. A failed fetch for one gap is
        logged and the remaining gaps are still tried; quotes fetched for the
        other gaps stay inserted, then FetchFailed is raised naming every gap
        that could not be filled. An empty stored history raises EmptySeries,
        since there is no start date to search from.
        """
        ticker = self.quotes.get_ticker_by_id(ticker_id)
        cal = self.get_calendar(calendar_name)
        gaps = self.quote_series(ticker_id).find_gaps(cal, today)
        logger.info("%s: %d gaps in quote history", ticker.name, len(gaps))

        inserted = 0
        failed: List[Tuple[date, date]] = []
        last_error: Optional[FetchFailed] = None
        for start, end in gaps:
            try:
                history = provider.fetch_quote_history(
                    ticker, datetime.combine(start, time.min), datetime.combine(end, time.max)
                )
            except FetchFailed as e:
                logger.warning("%s: fetching %s..%s failed: %s", ticker.name, start, end, e)
                failed.append((start, end))
                last_error = e
                continue

            for q in history:
                self.quotes.insert_quote(replace(q, ticker=ticker_id, id=None))
                inserted += 1

        logger.info("%s: inserted %d quotes", ticker.name, inserted)
        if failed:
            ranges = ", ".join(f"{start}..{end}" for start, end in failed)
            raise FetchFailed(
                f"{ticker.name}: {len(failed)} of {len(gaps)} gaps not filled ({ranges}); "
                f"{inserted} quotes inserted"
            ) from last_error
        return inserted
