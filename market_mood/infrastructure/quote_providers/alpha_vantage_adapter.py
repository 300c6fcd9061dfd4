"""
Infrastructure adapter: Alpha Vantage GLOBAL_QUOTE -> IQuoteProvider.
All Alpha Vantage details (numbered string fields, Note/Information
rate-limit payloads) are confined here.

Single-symbol. A rate-limited or unknown symbol comes back as HTTP 200 with
an empty "Global Quote" or a Note/Information message; both are
SymbolNotFoundError.
"""

import logging
import os
from typing import Any, Optional

import httpx

from market_mood.domain.entities.quote import ProviderQuote
from market_mood.domain.errors import DecodeError, SymbolNotFoundError
from market_mood.domain.ports.quote_provider_port import IQuoteProvider
from market_mood.infrastructure.quote_providers.http_base import (
    HttpQuoteProviderBase,
    parse_number,
)

logger = logging.getLogger(__name__)

ALPHAVANTAGE_URL = "https://www.alphavantage.co/query"


class AlphaVantageQuoteProvider(HttpQuoteProviderBase, IQuoteProvider):
    """Fetches quotes from Alpha Vantage's GLOBAL_QUOTE function."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = HttpQuoteProviderBase.DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key or os.environ.get("ALPHAVANTAGE_API_KEY", "")

    async def get_quote(self, symbol: str) -> ProviderQuote:
        payload = await self._get_json(
            ALPHAVANTAGE_URL,
            {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self._api_key},
        )
        return self._parse(payload, symbol)

    @staticmethod
    def _parse(payload: Any, symbol: str) -> ProviderQuote:
        if not isinstance(payload, dict):
            raise DecodeError("Alpha Vantage payload is not an object")
        for key in ("Note", "Information", "Error Message"):
            if key in payload:
                logger.warning("Alpha Vantage %s for %s: %s", key, symbol, payload[key])
                raise SymbolNotFoundError(symbol, f"Alpha Vantage: {payload[key]}")

        quote = payload.get("Global Quote")
        if quote is None:
            raise DecodeError("Alpha Vantage payload has no 'Global Quote'")
        if not isinstance(quote, dict):
            raise DecodeError("Alpha Vantage 'Global Quote' is not an object")
        if not quote:
            raise SymbolNotFoundError(symbol)

        return ProviderQuote(
            symbol=str(quote.get("01. symbol") or symbol),
            price=parse_number(quote.get("05. price")),
            previous_close=parse_number(quote.get("08. previous close")),
        )
