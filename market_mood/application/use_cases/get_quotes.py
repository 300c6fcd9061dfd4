"""
Use-case: retrieve quotes for a list of symbols, defaulting to the broad indices.
Depends only on Domain entities and application services: no infrastructure imports.
"""

from typing import Iterable, Optional

from market_mood.application.services.quote_aggregator import QuoteAggregator
from market_mood.domain.entities.quote import QuoteSet
from market_mood.domain.entities.symbol_names import DEFAULT_SYMBOLS


class GetQuotesUseCase:
    def __init__(self, aggregator: QuoteAggregator) -> None:
        self._aggregator = aggregator

    async def execute(self, symbols: Optional[Iterable[str]] = None) -> QuoteSet:
        """Fetch *symbols* (case-insensitive), or SPY/QQQ/DIA when none are given.

        Raises:
            QuoteError: the first symbol's error when every fetch failed, which
                is an InvalidRequestError when that symbol is malformed.
        """
        requested = [s for s in (symbols or []) if s and s.strip()]
        return await self._aggregator.fetch_all(requested or DEFAULT_SYMBOLS)
