"""
Use-case: one full refresh cycle (fetch -> classify -> narrate -> cache).
Depends only on Domain ports and application services: no infrastructure imports.

Business decisions owned here:
  - Re-entrancy: a refresh requested while one is in flight is either
    ignored (RefreshPolicy.IGNORE) or cancels the in-flight one
    (RefreshPolicy.SUPERSEDE).
  - A cycle that fails outright never clears the cached mood; the report
    carries the cached snapshot flagged as stale instead.
  - A display surface can leave a refresh request in the MoodCache; the
    next refresh_if_requested() call consumes it and regenerates the mood.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Optional

from market_mood.application.narration.narrator import MoodNarrator
from market_mood.application.services.mood_cache import MoodCache
from market_mood.application.services.mood_classifier import classify
from market_mood.application.services.quote_aggregator import QuoteAggregator
from market_mood.domain.entities.mood import MoodBucket, MoodSnapshot
from market_mood.domain.entities.quote import QuoteSet
from market_mood.domain.errors import QuoteError, user_message

logger = logging.getLogger(__name__)


class RefreshPolicy(str, Enum):
    IGNORE = "ignore"
    SUPERSEDE = "supersede"


@dataclass(frozen=True)
class MoodReport:
    quotes: QuoteSet = field(default_factory=QuoteSet)
    bucket: Optional[MoodBucket] = None
    sentence: Optional[str] = None
    narrated: bool = False
    snapshot: Optional[MoodSnapshot] = None
    is_stale: bool = False
    error: Optional[QuoteError] = None
    error_message: Optional[str] = None

    @property
    def can_retry(self) -> bool:
        """True when there is no fresh data and the user should get a retry action."""
        return self.error is not None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshMoodUseCase:
    def __init__(
        self,
        aggregator: QuoteAggregator,
        narrator: Optional[MoodNarrator] = None,
        cache: Optional[MoodCache] = None,
        policy: RefreshPolicy = RefreshPolicy.IGNORE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Args:
            aggregator: QuoteAggregator over the configured provider.
            narrator:   Optional MoodNarrator; None means canned sentences only.
            cache:      Optional MoodCache receiving each successful snapshot.
            policy:     What to do with a refresh requested while one is in flight.
            clock:      Timestamp source for snapshots.
        """
        self._aggregator = aggregator
        self._narrator = narrator
        self._cache = cache
        self._policy = policy
        self._clock = clock
        self._in_flight: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def is_loading(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    async def execute(
        self, symbols: Iterable[str], narrate: bool = True
    ) -> Optional[MoodReport]:
        """Run a refresh cycle for *symbols*.

        Returns:
            The MoodReport, or None when this request was ignored (IGNORE
            policy) or superseded by a newer one (SUPERSEDE policy).
        """
        symbols = list(symbols)
        if self.is_loading and self._policy is RefreshPolicy.IGNORE:
            logger.info("Refresh already in flight; ignoring new request")
            return None

        # Only the newest request may start a cycle.
        self._generation += 1
        generation = self._generation
        while self.is_loading:
            logger.info("Superseding in-flight refresh")
            previous = self._in_flight
            previous.cancel()
            await asyncio.wait({previous})
            if generation != self._generation:
                logger.info("Refresh superseded before it started")
                return None

        task = asyncio.create_task(self._run(symbols, narrate))
        self._in_flight = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None
        finally:
            if self._in_flight is task:
                self._in_flight = None

    def request_refresh(self) -> None:
        """Leave a refresh request for the next refresh_if_requested() call."""
        if self._cache is None:
            raise RuntimeError("refresh requests need a MoodCache")
        self._cache.request_refresh()

    async def refresh_if_requested(
        self, symbols: Iterable[str], narrate: bool = True
    ) -> Optional[MoodReport]:
        """Run a cycle only when a refresh request is pending, consuming it.

        A request is left in place while an IGNORE-policy refresh is in
        flight, so the next call still honors it.
        """
        if self._cache is None:
            return None
        if self.is_loading and self._policy is RefreshPolicy.IGNORE:
            return None
        if not self._cache.consume_refresh_request():
            return None
        logger.info("Handling pending refresh request")
        return await self.execute(symbols, narrate=narrate)

    async def _run(self, symbols: list[str], narrate: bool) -> MoodReport:
        if self._cache is not None:
            self._cache.mark_refreshing()
        try:
            return await self._cycle(symbols, narrate)
        finally:
            if self._cache is not None:
                self._cache.clear_refreshing()

    async def _cycle(self, symbols: list[str], narrate: bool) -> MoodReport:
        try:
            quotes = await self._aggregator.fetch_all(symbols)
        except QuoteError as exc:
            logger.warning("Refresh failed for %s: %s", symbols, exc)
            cached = self._cache.load() if self._cache is not None else None
            return MoodReport(
                sentence=cached.sentence if cached else None,
                snapshot=cached,
                is_stale=cached is not None,
                error=exc,
                error_message=user_message(exc),
            )

        bucket = classify(quotes)
        if narrate and self._narrator is not None:
            sentence, narrated = await self._narrator.narrate_or_fallback(quotes, symbols)
        else:
            sentence, narrated = bucket.canned_sentence, False

        snapshot = MoodSnapshot(
            sentence=sentence, timestamp=self._clock(), market_state=bucket.market_state
        )
        if self._cache is not None:
            self._cache.save(snapshot)
        logger.info("Mood refreshed (%s, narrated=%s): %s", bucket.label, narrated, sentence)
        return MoodReport(
            quotes=quotes,
            bucket=bucket,
            sentence=sentence,
            narrated=narrated,
            snapshot=snapshot,
        )
