"""
Use-case: look up symbols for the "add stock" picker.
Depends only on Domain ports and entities: no infrastructure imports.
"""

from market_mood.domain.entities.symbol_match import SymbolMatch
from market_mood.domain.ports.symbol_search_port import ISymbolSearch


class SearchSymbolsUseCase:
    MIN_QUERY_LENGTH: int = 3

    def __init__(self, search: ISymbolSearch) -> None:
        self._search = search

    async def execute(self, query: str, limit: int = 20) -> list[SymbolMatch]:
        """Search for *query*.

        Returns an empty list without calling the provider when the trimmed
        query is shorter than MIN_QUERY_LENGTH characters.
        """
        trimmed = (query or "").strip()
        if len(trimmed) < self.MIN_QUERY_LENGTH:
            return []
        results = await self._search.search(trimmed, limit=limit)
        return results[:limit]
