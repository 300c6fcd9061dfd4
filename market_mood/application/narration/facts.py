"""
Structured facts a mood narration is allowed to use.
Pure Python: built from domain entities and the pure application services.
"""

from dataclasses import dataclass
from typing import Iterable

from market_mood.application.services.mood_classifier import average_change, classify
from market_mood.application.services.mover_selector import select_movers
from market_mood.domain.entities.mood import MoodBucket, NotableMover
from market_mood.domain.entities.quote import Quote, QuoteSet, normalize_symbol
from market_mood.domain.entities.symbol_names import DEFAULT_SYMBOLS

MARKET_SCOPE = "the market"
CUSTOM_SCOPE = "your stocks"


@dataclass(frozen=True)
class NarrationFacts:
    scope_label: str
    bucket: MoodBucket
    overall_change: float
    num_up: int
    num_down: int
    total: int
    movers: tuple[NotableMover, ...]
    quotes: tuple[Quote, ...]
    tracked_symbols: frozenset[str]


def scope_label(
    tracked_symbols: Iterable[str],
    default_symbols: Iterable[str] = DEFAULT_SYMBOLS,
) -> str:
    """Return "the market" for exactly the canonical index set, else "your stocks"."""
    tracked = {normalize_symbol(s) for s in tracked_symbols}
    canonical = {normalize_symbol(s) for s in default_symbols}
    return MARKET_SCOPE if tracked == canonical else CUSTOM_SCOPE


def gather_facts(
    quotes: QuoteSet,
    tracked_symbols: Iterable[str],
    threshold: float,
    cap: int,
    default_symbols: Iterable[str] = DEFAULT_SYMBOLS,
) -> NarrationFacts:
    """
    Raises:
        ValueError: if *quotes* is empty.
    """
    tracked = frozenset(normalize_symbol(s) for s in tracked_symbols)
    bucket = classify(quotes)
    if bucket is None:
        raise ValueError("cannot narrate an empty QuoteSet")
    return NarrationFacts(
        scope_label=scope_label(tracked, default_symbols),
        bucket=bucket,
        overall_change=average_change(quotes),
        num_up=sum(1 for q in quotes if q.change_percent > 0),
        num_down=sum(1 for q in quotes if q.change_percent < 0),
        total=len(quotes),
        movers=tuple(select_movers(quotes, threshold=threshold, cap=cap)),
        quotes=tuple(quotes),
        tracked_symbols=tracked,
    )
