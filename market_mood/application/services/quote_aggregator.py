"""
Application service: fan out quote fetches concurrently and merge the outcomes.
Depends only on Domain ports and entities: no infrastructure imports.

Business decisions owned here:
  - Partial success: one symbol failing never aborts its siblings; every
    outcome is collected before deciding.
  - Deterministic results: output follows input order, and a total failure
    raises the error recorded for the first input symbol.
"""

import asyncio
import logging
from typing import Iterable, Optional

from market_mood.application.services.quote_fetcher import FetchOutcome, QuoteFetcher
from market_mood.domain.entities.quote import Quote, QuoteSet, normalize_symbol
from market_mood.domain.errors import (
    FetchTimeoutError,
    InvalidRequestError,
    QuoteError,
)

logger = logging.getLogger(__name__)


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Normalize and dedupe case-insensitively, keeping first-occurrence order.

    Malformed symbols are kept; QuoteFetcher reports them per symbol.
    """
    seen: set[str] = set()
    ordered: list[str] = []
    for symbol in symbols:
        normalized = normalize_symbol(symbol)
        if normalized not in seen:
            seen.add(normalized)
            ordered.append(normalized)
    return ordered


class QuoteAggregator:
    DEFAULT_AGGREGATE_TIMEOUT: float = 20.0

    def __init__(
        self,
        fetcher: QuoteFetcher,
        aggregate_timeout: float = DEFAULT_AGGREGATE_TIMEOUT,
        max_concurrency: Optional[int] = None,
    ) -> None:
        """
        Args:
            fetcher:           QuoteFetcher wrapping the configured provider.
            aggregate_timeout: Ceiling in seconds for waiting on all outcomes.
            max_concurrency:   Optional bound on in-flight fetch tasks.
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._fetcher = fetcher
        self._aggregate_timeout = aggregate_timeout
        self._max_concurrency = max_concurrency

    async def fetch_all(self, symbols: Iterable[str]) -> QuoteSet:
        """Fetch every symbol and return the successes in input order.

        Raises:
            InvalidRequestError: if *symbols* is empty.
            QuoteError: the first input symbol's error when every fetch failed,
                        including an InvalidRequestError for a malformed symbol.
        """
        ordered = unique_symbols(symbols)
        if not ordered:
            raise InvalidRequestError("at least one symbol is required")

        outcomes = await self._collect(ordered)

        quotes: list[Quote] = []
        failures: dict[str, QuoteError] = {}
        for symbol in ordered:
            outcome = outcomes[symbol]
            if isinstance(outcome, Quote):
                quotes.append(outcome)
            else:
                failures[symbol] = outcome

        if not quotes:
            first_error = failures[ordered[0]]
            logger.warning(
                "All %d quote fetches failed; first error (%s): %s",
                len(ordered), ordered[0], first_error,
            )
            raise first_error

        for symbol, error in failures.items():
            logger.warning("Dropping %s from results: %s", symbol, error)
        logger.debug("Fetched %d/%d quotes", len(quotes), len(ordered))
        return QuoteSet(quotes=tuple(quotes), failures=failures)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _batches(self, symbols: list[str]) -> list[list[str]]:
        size = self._fetcher.max_batch_size
        return [symbols[i:i + size] for i in range(0, len(symbols), size)]

    async def _collect(self, symbols: list[str]) -> dict[str, FetchOutcome]:
        semaphore = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        )
        batched = self._fetcher.max_batch_size > 1

        async def run(batch: list[str]) -> dict[str, FetchOutcome]:
            if semaphore is None:
                return await self._fetch_one_batch(batch, batched)
            async with semaphore:
                return await self._fetch_one_batch(batch, batched)

        tasks = {
            asyncio.create_task(run(batch)): batch for batch in self._batches(symbols)
        }
        outcomes: dict[str, FetchOutcome] = {}
        try:
            done, pending = await asyncio.wait(tasks, timeout=self._aggregate_timeout)
            for task in done:
                outcomes.update(task.result())
            for task in pending:
                task.cancel()
                for symbol in tasks[task]:
                    outcomes[symbol] = FetchTimeoutError(
                        f"Quote request for {symbol} exceeded the "
                        f"{self._aggregate_timeout}s aggregate timeout"
                    )
            if pending:
                await asyncio.wait(pending)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        return outcomes

    async def _fetch_one_batch(
        self, batch: list[str], batched: bool
    ) -> dict[str, FetchOutcome]:
        if batched:
            return await self._fetcher.fetch_batch(batch)
        (symbol,) = batch
        try:
            return {symbol: await self._fetcher.fetch(symbol)}
        except QuoteError as exc:
            return {symbol: exc}
