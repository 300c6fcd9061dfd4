"""
Port (interface) for quote providers.
Infrastructure adapters (e.g. YahooQuoteProvider, FMPQuoteProvider) must
implement this interface.

Adapters raise the typed errors of market_mood.domain.errors; vendor
exceptions never cross this boundary.
"""

from abc import ABC, abstractmethod

from market_mood.domain.entities.quote import ProviderQuote


class IQuoteProvider(ABC):
    #: Symbols a single upstream call can carry. 1 means single-symbol only.
    max_batch_size: int = 1

    @abstractmethod
    async def get_quote(self, symbol: str) -> ProviderQuote:
        """Fetch the quote for one normalized symbol."""
        ...

    async def get_quotes(self, symbols: list[str]) -> dict[str, ProviderQuote]:
        """Fetch several symbols in one upstream call.

        Returns a mapping keyed by the provider's symbol spelling; symbols the
        provider has no data for are omitted. Only batch-capable adapters
        (max_batch_size > 1) need to override this.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support batch quotes")
