"""Market data access that turns ticker symbols into quotes."""

from typing import Iterable, List, Optional

import yfinance as yf

from ..config.logging import get_logger
from .stock_picker.models import Quote

logger = get_logger(__name__)


class YFinanceQuoteSource:
    """Builds best-effort quote snapshots from Yahoo Finance."""

    def __init__(self):
        self.logger = logger.bind(component="quote_source")

    async def get_quotes(self, symbols: Iterable[str]) -> List[Quote]:
        """
        Fetch quotes for a list of symbols.

        Args:
            symbols: Ticker symbols to look up

        Returns:
            Quotes for the symbols that could be fetched, in request order
        """
        quotes = []
        seen = set()
        for raw_symbol in symbols:
            symbol = raw_symbol.strip().upper()
            if not symbol or symbol in seen:
                continue
            seen.add(symbol)

            quote = await self.get_quote(symbol)
            if quote is not None:
                quotes.append(quote)

        self.logger.info(
            "Fetched quotes", requested=len(seen), received=len(quotes)
        )
        return quotes

    async def get_quote(self, symbol: str) -> Optional[Quote]:
        """
        Fetch a single quote from the last two daily bars.

        Args:
            symbol: Ticker symbol

        Returns:
            Quote or None if no data is available
        """
        try:
            ticker = yf.Ticker(symbol)
            hist = ticker.history(period="5d", interval="1d")

            if hist.empty:
                self.logger.warning(f"No price history for {symbol}")
                return None

            last = hist.iloc[-1]
            close = float(last["Close"])
            previous_close = float(hist["Close"].iloc[-2]) if len(hist) >= 2 else close
            change = close - previous_close
            change_percent = (change / previous_close) * 100 if previous_close else 0.0

            try:
                info = ticker.info or {}
            except Exception as e:
                # Quote summary is optional; price bars are enough to score
                self.logger.debug(f"Could not load info for {symbol}: {e}")
                info = {}

            avg_volume = info.get("averageVolume")

            return Quote(
                ticker=symbol,
                name=info.get("shortName"),
                close=close,
                open=float(last["Open"]),
                high=float(last["High"]),
                low=float(last["Low"]),
                change=change,
                change_percent=change_percent,
                volume=int(last["Volume"]),
                avg_volume=int(avg_volume) if avg_volume else None,
            )

        except Exception as e:
            self.logger.warning(f"Failed to fetch quote for {symbol}: {e}")
            return None
