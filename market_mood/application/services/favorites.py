"""
Application service: the user's ordered list of favorite symbols.
Depends only on the IKeyValueStore port and symbol validation: no infrastructure imports.
"""

import logging
from typing import Iterable

from market_mood.application.services.quote_fetcher import validate_symbol
from market_mood.domain.entities.quote import normalize_symbol
from market_mood.domain.entities.symbol_names import DEFAULT_SYMBOLS
from market_mood.domain.errors import InvalidRequestError
from market_mood.domain.ports.key_value_store_port import IKeyValueStore

logger = logging.getLogger(__name__)

FAVORITES_KEY = "favoriteSymbols"


def normalize_symbols(symbols: Iterable[str]) -> list[str]:
    """Uppercase, trim, drop malformed symbols and case-insensitive duplicates."""
    seen: set[str] = set()
    result: list[str] = []
    for symbol in symbols:
        try:
            normalized = validate_symbol(symbol)
        except InvalidRequestError:
            continue
        if normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result


class FavoritesService:
    def __init__(
        self,
        store: IKeyValueStore,
        default_symbols: Iterable[str] = DEFAULT_SYMBOLS,
    ) -> None:
        self._store = store
        saved = store.get(FAVORITES_KEY)
        if isinstance(saved, list) and saved:
            self._symbols = normalize_symbols(saved) or list(default_symbols)
            if self._symbols != saved:
                logger.info("Normalized stored favorites: %s -> %s", saved, self._symbols)
                self._save()
        else:
            self._symbols = list(default_symbols)
            self._save()

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    def add(self, symbol: str) -> bool:
        """Append *symbol*; returns False for blanks and duplicates.

        Raises:
            InvalidRequestError: if *symbol* is not a well-formed ticker.
        """
        if not isinstance(symbol, str) or not symbol.strip():
            return False
        normalized = validate_symbol(symbol)
        if normalized in self._symbols:
            return False
        self._symbols.append(normalized)
        self._save()
        return True

    def remove(self, symbol: str) -> bool:
        normalized = normalize_symbol(symbol)
        if normalized not in self._symbols:
            return False
        self._symbols.remove(normalized)
        self._save()
        return True

    def _save(self) -> None:
        self._store.set(FAVORITES_KEY, list(self._symbols))
