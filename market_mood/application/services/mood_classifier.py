"""
Application service: deterministic mood classification.
Pure functions over domain entities: no I/O, no infrastructure imports.

Thresholds are tested in a fixed order (euphoric, upbeat, stressed, cautious)
so that exact boundary values resolve to the more extreme bucket.
"""

from typing import Iterable, Optional

from market_mood.domain.entities.mood import MarketState, MoodBucket
from market_mood.domain.entities.quote import Quote

EUPHORIC_THRESHOLD = 0.015
UPBEAT_THRESHOLD = 0.005
STRESSED_THRESHOLD = -0.015
CAUTIOUS_THRESHOLD = -0.005


def average_change(quotes: Iterable[Quote]) -> Optional[float]:
    """Unweighted mean of change_percent, or None for no quotes."""
    changes = [q.change_percent for q in quotes]
    if not changes:
        return None
    return sum(changes) / len(changes)


def bucket_for_change(average: float) -> MoodBucket:
    if average >= EUPHORIC_THRESHOLD:
        return MoodBucket.EUPHORIC
    if average >= UPBEAT_THRESHOLD:
        return MoodBucket.UPBEAT
    if average <= STRESSED_THRESHOLD:
        return MoodBucket.STRESSED
    if average <= CAUTIOUS_THRESHOLD:
        return MoodBucket.CAUTIOUS
    return MoodBucket.STEADY


def classify(quotes: Iterable[Quote]) -> Optional[MoodBucket]:
    """Classify the aggregate mood; None means "no data", never STEADY."""
    average = average_change(quotes)
    if average is None:
        return None
    return bucket_for_change(average)


def canned_sentence(quotes: Iterable[Quote]) -> Optional[str]:
    bucket = classify(quotes)
    return bucket.canned_sentence if bucket else None


def market_state(quotes: Iterable[Quote]) -> MarketState:
    bucket = classify(quotes)
    return bucket.market_state if bucket else MarketState.NEUTRAL
