"""
Application service: fetch and validate quotes from an IQuoteProvider.
Depends only on Domain ports and entities: no infrastructure imports.

No retries happen here. Cancellation propagates untouched; only a real
timeout becomes FetchTimeoutError.
"""

import asyncio
import logging
import math
import re
from typing import Optional, Union

from market_mood.domain.entities.quote import ProviderQuote, Quote, normalize_symbol
from market_mood.domain.errors import (
    FetchTimeoutError,
    InvalidRequestError,
    MissingFieldError,
    QuoteError,
    SymbolNotFoundError,
    TransportError,
)
from market_mood.domain.ports.quote_provider_port import IQuoteProvider

logger = logging.getLogger(__name__)

_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9^][A-Z0-9.\-=^]{0,19}$")

FetchOutcome = Union[Quote, QuoteError]


def validate_symbol(symbol: str) -> str:
    """Normalize *symbol* or raise InvalidRequestError."""
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidRequestError("symbol must be a non-empty string")
    normalized = normalize_symbol(symbol)
    if not _SYMBOL_PATTERN.match(normalized):
        raise InvalidRequestError(f"invalid symbol: {symbol!r}")
    return normalized


def _as_number(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class QuoteFetcher:
    DEFAULT_TIMEOUT: float = 10.0

    def __init__(self, provider: IQuoteProvider, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._provider = provider
        self._timeout = timeout

    @property
    def max_batch_size(self) -> int:
        return max(1, int(getattr(self._provider, "max_batch_size", 1)))

    async def fetch(self, symbol: str) -> Quote:
        """Fetch one quote.

        Raises:
            QuoteError subclasses only; CancelledError propagates as-is.
        """
        normalized = validate_symbol(symbol)
        raw = await self._call(self._provider.get_quote(normalized), normalized)
        return self._to_quote(normalized, raw)

    async def fetch_batch(self, symbols: list[str]) -> dict[str, FetchOutcome]:
        """Fetch several symbols in one provider call.

        Returns exactly one outcome per requested symbol, keyed by the
        normalized symbol. Malformed symbols get an InvalidRequestError and are
        left out of the provider call; a batch-level failure is recorded for
        every remaining symbol.
        """
        outcomes: dict[str, FetchOutcome] = {}
        valid: list[str] = []
        for symbol in symbols:
            try:
                valid.append(validate_symbol(symbol))
            except InvalidRequestError as exc:
                outcomes[normalize_symbol(str(symbol))] = exc
        if not valid:
            return outcomes

        label = ",".join(valid)
        try:
            raw = await self._call(self._provider.get_quotes(valid), label)
        except QuoteError as exc:
            outcomes.update({s: exc for s in valid})
            return outcomes

        by_symbol = {normalize_symbol(k): v for k, v in raw.items()}
        for symbol in valid:
            item = by_symbol.get(symbol)
            if item is None:
                outcomes[symbol] = SymbolNotFoundError(symbol)
                continue
            try:
                outcomes[symbol] = self._to_quote(symbol, item)
            except QuoteError as exc:
                outcomes[symbol] = exc
        return outcomes

    async def _call(self, awaitable, label: str):
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise FetchTimeoutError(
                f"Quote request for {label} timed out after {self._timeout}s", exc
            ) from exc
        except QuoteError:
            raise
        except Exception as exc:
            logger.debug("Unexpected provider error for %s", label, exc_info=True)
            raise TransportError(f"Quote request for {label} failed: {exc}", exc) from exc

    @staticmethod
    def _to_quote(symbol: str, raw: ProviderQuote) -> Quote:
        price = _as_number(raw.price)
        if price is None or price <= 0:
            raise MissingFieldError(symbol, "price")
        previous_close = _as_number(raw.previous_close)
        if previous_close is None:
            raise MissingFieldError(symbol, "previous_close")
        return Quote(
            symbol=symbol,
            price=price,
            previous_close=previous_close,
            name=(raw.name or None),
        )
