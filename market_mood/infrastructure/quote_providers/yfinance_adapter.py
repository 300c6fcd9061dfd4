"""
Infrastructure adapter: yfinance -> IQuoteProvider.
All yfinance-specific details (fast_info, info) are confined here;
the rest of the codebase depends only on IQuoteProvider.

yfinance is synchronous, so each lookup runs in a worker thread. Values are
passed through as reported; QuoteFetcher decides whether they are numeric.
"""

import asyncio
import logging

import yfinance as yf

from market_mood.domain.entities.quote import ProviderQuote
from market_mood.domain.errors import SymbolNotFoundError, TransportError
from market_mood.domain.ports.quote_provider_port import IQuoteProvider

logger = logging.getLogger(__name__)


class YFinanceQuoteProvider(IQuoteProvider):
    """Fetches quotes from Yahoo Finance via the yfinance library."""

    def __init__(self, ticker_factory=yf.Ticker) -> None:
        """
        Args:
            ticker_factory: Callable returning a yfinance-like Ticker for a symbol.
        """
        self._ticker_factory = ticker_factory

    async def get_quote(self, symbol: str) -> ProviderQuote:
        return await asyncio.to_thread(self._get_quote_sync, symbol)

    def _get_quote_sync(self, symbol: str) -> ProviderQuote:
        ticker = self._ticker_factory(symbol)
        try:
            fast_info = ticker.fast_info
            price = getattr(fast_info, "last_price", None)
            previous_close = getattr(fast_info, "previous_close", None)
        except KeyError as exc:
            # fast_info raises KeyError for symbols Yahoo does not know.
            raise SymbolNotFoundError(symbol) from exc
        except Exception as exc:
            raise TransportError(f"yfinance lookup for {symbol!r} failed: {exc}", exc) from exc

        name = None
        if price is None or previous_close is None:
            info = self._info(ticker, symbol)
            price = price if price is not None else info.get("currentPrice")
            previous_close = (
                previous_close if previous_close is not None else info.get("previousClose")
            )
            name = info.get("longName") or info.get("shortName")
            if price is None and previous_close is None:
                raise SymbolNotFoundError(symbol)

        return ProviderQuote(
            symbol=symbol,
            price=price,
            previous_close=previous_close,
            name=name,
        )

    @staticmethod
    def _info(ticker, symbol: str) -> dict:
        try:
            return ticker.info or {}
        except Exception as exc:
            logger.debug("yfinance info unavailable for %s: %s", symbol, exc)
            return {}
