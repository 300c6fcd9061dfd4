"""
Domain entities for quote data.
Zero external dependencies: pure Python dataclasses only.

change_percent is a fraction (0.02 == +2%) and is never computed by
dividing by a zero previous close.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from market_mood.domain.entities.symbol_names import common_name


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


@dataclass(frozen=True)
class ProviderQuote:
    """Raw quote as returned by a provider adapter, before validation."""

    symbol: str
    price: Optional[float]
    previous_close: Optional[float]
    name: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    previous_close: float
    name: Optional[str] = None

    @property
    def change(self) -> float:
        return self.price - self.previous_close

    @property
    def change_percent(self) -> float:
        if self.previous_close == 0:
            return 0.0
        return self.change / self.previous_close

    @property
    def display_name(self) -> str:
        return common_name(self.symbol) or self.name or self.symbol


@dataclass(frozen=True)
class QuoteSet:
    """Ordered quotes in caller-requested order.

    May hold fewer quotes than were requested: symbols whose fetch failed are
    listed in *failures* (symbol -> QuoteError) instead.
    """

    quotes: tuple[Quote, ...] = ()
    failures: Mapping[str, Exception] = field(default_factory=dict)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for quote in self.quotes:
            key = normalize_symbol(quote.symbol)
            if key in seen:
                raise ValueError(f"duplicate symbol in QuoteSet: {quote.symbol!r}")
            seen.add(key)
        object.__setattr__(self, "quotes", tuple(self.quotes))
        object.__setattr__(self, "failures", MappingProxyType(dict(self.failures)))

    def __iter__(self) -> Iterator[Quote]:
        return iter(self.quotes)

    def __len__(self) -> int:
        return len(self.quotes)

    def __getitem__(self, index: int) -> Quote:
        return self.quotes[index]

    @property
    def symbols(self) -> list[str]:
        return [q.symbol for q in self.quotes]

    def get(self, symbol: str) -> Optional[Quote]:
        key = normalize_symbol(symbol)
        return next(
            (q for q in self.quotes if normalize_symbol(q.symbol) == key),
            None,
        )
