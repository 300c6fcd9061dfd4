"""
Application service: pick the notable movers used to ground mood narration.
Pure function over domain entities: no I/O, no infrastructure imports.
"""

from typing import Iterable

from market_mood.domain.entities.mood import Direction, NotableMover
from market_mood.domain.entities.quote import Quote

DEFAULT_THRESHOLD = 0.015
DEFAULT_CAP = 2


def to_mover(quote: Quote) -> NotableMover:
    pct = quote.change_percent
    return NotableMover(
        symbol=quote.symbol,
        display_name=quote.display_name,
        change_percent=pct,
        direction=Direction.UP if pct >= 0 else Direction.DOWN,
    )


def select_movers(
    quotes: Iterable[Quote],
    threshold: float = DEFAULT_THRESHOLD,
    cap: int = DEFAULT_CAP,
) -> list[NotableMover]:
    """Return up to *cap* quotes with |change_percent| >= *threshold*.

    Sorted by descending absolute move; ties keep the input order.

    Raises:
        ValueError: if *threshold* or *cap* is negative.
    """
    if threshold < 0:
        raise ValueError("threshold must be >= 0")
    if cap < 0:
        raise ValueError("cap must be >= 0")
    candidates = [q for q in quotes if abs(q.change_percent) >= threshold]
    candidates = sorted(candidates, key=lambda q: abs(q.change_percent), reverse=True)
    return [to_mover(q) for q in candidates[:cap]]
