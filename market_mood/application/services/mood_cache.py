"""
Application service: persist the last mood for any display surface.
Depends only on the IKeyValueStore port: no infrastructure imports.

Keys match the ones the home-screen widget reads, so a shared store file can
feed both the service and a display surface.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from market_mood.domain.entities.mood import MarketState, MoodSnapshot
from market_mood.domain.ports.key_value_store_port import IKeyValueStore

logger = logging.getLogger(__name__)

CACHED_MOOD_KEY = "MarketMood.cachedMoodText"
CACHED_MOOD_DATE_KEY = "MarketMood.cachedMoodDateISO8601"
CACHED_MARKET_STATE_KEY = "MarketMood.cachedMarketState"
REFRESHING_UNTIL_KEY = "MarketMood.refreshingUntilISO8601"
REFRESH_REQUESTED_KEY = "MarketMood.refreshRequestedISO8601"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("Ignoring malformed ISO-8601 timestamp in mood cache: %r", value)
        return None


class MoodCache:
    def __init__(
        self,
        store: IKeyValueStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    def save(self, snapshot: MoodSnapshot) -> None:
        self._store.set(CACHED_MOOD_KEY, snapshot.sentence)
        self._store.set(CACHED_MOOD_DATE_KEY, snapshot.timestamp.isoformat())
        self._store.set(CACHED_MARKET_STATE_KEY, snapshot.market_state.value)

    def load(self) -> Optional[MoodSnapshot]:
        sentence = self._store.get(CACHED_MOOD_KEY)
        timestamp = _parse(self._store.get(CACHED_MOOD_DATE_KEY))
        if not sentence or timestamp is None:
            return None
        raw_state = self._store.get(CACHED_MARKET_STATE_KEY, MarketState.NEUTRAL.value)
        try:
            state = MarketState(raw_state)
        except ValueError:
            state = MarketState.NEUTRAL
        return MoodSnapshot(sentence=sentence, timestamp=timestamp, market_state=state)

    def mark_refreshing(self, seconds: float = 3.0) -> datetime:
        """Flag a short-lived refreshing phase and return when it ends."""
        until = self._clock() + timedelta(seconds=seconds)
        self._store.set(REFRESHING_UNTIL_KEY, until.isoformat())
        return until

    def clear_refreshing(self) -> None:
        self._store.delete(REFRESHING_UNTIL_KEY)

    def is_refreshing(self, now: Optional[datetime] = None) -> bool:
        until = _parse(self._store.get(REFRESHING_UNTIL_KEY))
        return until is not None and until > (now or self._clock())

    def request_refresh(self) -> None:
        """Ask the next refresh cycle to regenerate the mood."""
        self._store.set(REFRESH_REQUESTED_KEY, self._clock().isoformat())

    def consume_refresh_request(self) -> bool:
        if self._store.get(REFRESH_REQUESTED_KEY) is None:
            return False
        self._store.delete(REFRESH_REQUESTED_KEY)
        return True
