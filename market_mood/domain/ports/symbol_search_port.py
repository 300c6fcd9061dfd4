"""
Port (interface) for symbol search providers.
Infrastructure adapters (e.g. FMPQuoteProvider) must implement this interface.
"""

from abc import ABC, abstractmethod

from market_mood.domain.entities.symbol_match import SymbolMatch


class ISymbolSearch(ABC):
    @abstractmethod
    async def search(self, query: str, limit: int = 20) -> list[SymbolMatch]:
        """Return up to *limit* candidates for a free-text *query*."""
        ...
