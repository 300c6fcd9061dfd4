"""
Domain entities for market mood.
Zero external dependencies: pure Python dataclasses and enums only.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MarketState(str, Enum):
    """Coarse tag persisted alongside the mood text for the display surface."""

    GOOD = "good"
    BAD = "bad"
    NEUTRAL = "neutral"


class MoodBucket(Enum):
    EUPHORIC = ("euphoric", "The market is euphoric with strong gains.", MarketState.GOOD)
    UPBEAT = ("upbeat", "The market feels upbeat with solid momentum.", MarketState.GOOD)
    STEADY = ("steady", "The market mood is steady and balanced.", MarketState.NEUTRAL)
    CAUTIOUS = ("cautious", "The market feels cautious after a pullback.", MarketState.BAD)
    STRESSED = ("stressed", "The market is stressed with sharp losses.", MarketState.BAD)

    def __init__(self, label: str, sentence: str, state: MarketState) -> None:
        self.label = label
        self.canned_sentence = sentence
        self.market_state = state

    @property
    def rank(self) -> int:
        """0 for the saddest bucket, 4 for the happiest."""
        return _RANKS[self]


_RANKS = {
    MoodBucket.STRESSED: 0,
    MoodBucket.CAUTIOUS: 1,
    MoodBucket.STEADY: 2,
    MoodBucket.UPBEAT: 3,
    MoodBucket.EUPHORIC: 4,
}


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"

    @property
    def arrow(self) -> str:
        return "▲" if self is Direction.UP else "▼"


@dataclass(frozen=True)
class NotableMover:
    symbol: str
    display_name: str
    change_percent: float
    direction: Direction


@dataclass(frozen=True)
class MoodSnapshot:
    """What a successful refresh cycle hands to the mood cache."""

    sentence: str
    timestamp: datetime
    market_state: MarketState

    def to_dict(self) -> dict:
        return {
            "sentence": self.sentence,
            "timestamp": self.timestamp.isoformat(),
            "market_state": self.market_state.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MoodSnapshot":
        return cls(
            sentence=data["sentence"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            market_state=MarketState(data.get("market_state", MarketState.NEUTRAL.value)),
        )
