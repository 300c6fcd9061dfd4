"""
Infrastructure adapter: Financial Modeling Prep -> IQuoteProvider, ISymbolSearch.
All FMP-specific details (/stable endpoints, apikey parameter, field names)
are confined here.

Single-symbol: /stable/quote is called once per symbol.
"""

import logging
import os
from typing import Any, Optional

import httpx

from market_mood.domain.entities.quote import ProviderQuote, normalize_symbol
from market_mood.domain.entities.symbol_match import SymbolMatch
from market_mood.domain.errors import DecodeError, SymbolNotFoundError
from market_mood.domain.ports.quote_provider_port import IQuoteProvider
from market_mood.domain.ports.symbol_search_port import ISymbolSearch
from market_mood.infrastructure.quote_providers.http_base import (
    HttpQuoteProviderBase,
    parse_number,
)

logger = logging.getLogger(__name__)

FMP_BASE_URL = "https://financialmodelingprep.com/stable"


class FMPQuoteProvider(HttpQuoteProviderBase, IQuoteProvider, ISymbolSearch):
    """Fetches quotes and symbol search results from Financial Modeling Prep."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = HttpQuoteProviderBase.DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key or os.environ.get("FMP_API_KEY", "")
        if not self._api_key:
            logger.warning("FMP_API_KEY is not set; requests will be rejected upstream")

    async def get_quote(self, symbol: str) -> ProviderQuote:
        payload = await self._get_json(
            f"{FMP_BASE_URL}/quote", {"symbol": symbol, "apikey": self._api_key}
        )
        rows = self._rows(payload, symbol)
        row = next(
            (r for r in rows if normalize_symbol(str(r.get("symbol", ""))) == symbol),
            None,
        )
        if row is None:
            raise SymbolNotFoundError(symbol)
        return ProviderQuote(
            symbol=symbol,
            price=parse_number(row.get("price")),
            previous_close=parse_number(row.get("previousClose")),
            name=row.get("name"),
        )

    async def search(self, query: str, limit: int = 20) -> list[SymbolMatch]:
        payload = await self._get_json(
            f"{FMP_BASE_URL}/search-symbol",
            {"query": query, "limit": limit, "apikey": self._api_key},
        )
        rows = self._rows(payload, query)
        return [
            SymbolMatch(
                symbol=normalize_symbol(str(r["symbol"])),
                name=r.get("name") or str(r["symbol"]),
                exchange=r.get("exchange") or r.get("exchangeFullName"),
            )
            for r in rows
            if isinstance(r, dict) and r.get("symbol")
        ][:limit]

    @staticmethod
    def _rows(payload: Any, subject: str) -> list[dict]:
        if isinstance(payload, dict) and "Error Message" in payload:
            # FMP answers 200 with an error body on plan limits and rate limits.
            raise SymbolNotFoundError(subject, f"FMP error: {payload['Error Message']}")
        if not isinstance(payload, list):
            raise DecodeError("FMP payload is not a list")
        return [r for r in payload if isinstance(r, dict)]
