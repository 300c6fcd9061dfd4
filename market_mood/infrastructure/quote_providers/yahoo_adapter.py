"""
Infrastructure adapter: Yahoo Finance bulk quote JSON -> IQuoteProvider.
All Yahoo-specific details (quoteResponse envelope, regularMarket* fields)
are confined here; the rest of the codebase depends only on IQuoteProvider.

Batch-capable: one request carries up to max_batch_size symbols.
"""

from typing import Any

from market_mood.domain.entities.quote import ProviderQuote, normalize_symbol
from market_mood.domain.errors import DecodeError, SymbolNotFoundError
from market_mood.domain.ports.quote_provider_port import IQuoteProvider
from market_mood.infrastructure.quote_providers.http_base import (
    HttpQuoteProviderBase,
    parse_number,
)

YF_QUOTE_JSON = "https://query1.finance.yahoo.com/v7/finance/quote"


class YahooQuoteProvider(HttpQuoteProviderBase, IQuoteProvider):
    """Fetches quotes from Yahoo's v7 quote endpoint."""

    max_batch_size = 50

    async def get_quote(self, symbol: str) -> ProviderQuote:
        quotes = await self.get_quotes([symbol])
        found = quotes.get(normalize_symbol(symbol))
        if found is None:
            raise SymbolNotFoundError(symbol)
        return found

    async def get_quotes(self, symbols: list[str]) -> dict[str, ProviderQuote]:
        payload = await self._get_json(YF_QUOTE_JSON, {"symbols": ",".join(symbols)})
        return {
            normalize_symbol(q.symbol): q for q in self._parse(payload)
        }

    @staticmethod
    def _parse(payload: Any) -> list[ProviderQuote]:
        try:
            rows = payload["quoteResponse"]["result"]
        except (KeyError, TypeError) as exc:
            raise DecodeError("Yahoo payload has no quoteResponse.result") from exc
        if not isinstance(rows, list):
            raise DecodeError("Yahoo quoteResponse.result is not a list")

        quotes = []
        for row in rows:
            if not isinstance(row, dict) or not row.get("symbol"):
                raise DecodeError("Yahoo quote row has no symbol")
            quotes.append(
                ProviderQuote(
                    symbol=str(row["symbol"]),
                    price=parse_number(row.get("regularMarketPrice")),
                    previous_close=parse_number(row.get("regularMarketPreviousClose")),
                    name=row.get("longName") or row.get("shortName"),
                )
            )
        return quotes
