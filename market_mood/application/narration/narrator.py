"""
Application service: turn a QuoteSet into a witty, strictly grounded sentence.
Depends only on Domain ports and the narration graph: no infrastructure imports.

narrate() raises NarrationError and nothing else; narrate_or_fallback()
composes it with the deterministic canned sentence so callers never see a
language-generation failure.
"""

import logging
from typing import Iterable, Optional

from market_mood.application.narration.facts import NarrationFacts, gather_facts
from market_mood.application.narration.graph import build_narration_graph
from market_mood.application.narration.prompts import build_mood_prompt
from market_mood.application.services.mood_classifier import canned_sentence
from market_mood.application.services.mover_selector import DEFAULT_CAP, DEFAULT_THRESHOLD
from market_mood.domain.entities.quote import QuoteSet
from market_mood.domain.entities.symbol_names import DEFAULT_SYMBOLS
from market_mood.domain.errors import NarrationError
from market_mood.domain.ports.observability_port import (
    IObservabilityHandler,
    NullObservabilityHandler,
)
from market_mood.domain.ports.text_generator_port import ITextGenerator

logger = logging.getLogger(__name__)


class MoodNarrator:
    def __init__(
        self,
        generator: ITextGenerator,
        observability: Optional[IObservabilityHandler] = None,
        threshold: float = DEFAULT_THRESHOLD,
        cap: int = DEFAULT_CAP,
        max_attempts: int = 2,
        default_symbols: Iterable[str] = DEFAULT_SYMBOLS,
    ) -> None:
        """
        Args:
            generator:       ITextGenerator implementation (e.g. Bedrock adapter).
            observability:   IObservabilityHandler for tracing graph runs.
            threshold:       Minimum |change_percent| for a notable mover.
            cap:             Maximum number of notable movers in the prompt.
            max_attempts:    Generator calls allowed before giving up on grounding.
            default_symbols: The canonical index set that earns "the market".
        """
        self._graph = build_narration_graph(generator, max_attempts=max_attempts)
        self._observability = observability or NullObservabilityHandler()
        self._threshold = threshold
        self._cap = cap
        self._default_symbols = tuple(default_symbols)

    def facts_for(self, quotes: QuoteSet, tracked_symbols: Iterable[str]) -> NarrationFacts:
        return gather_facts(
            quotes,
            tracked_symbols,
            threshold=self._threshold,
            cap=self._cap,
            default_symbols=self._default_symbols,
        )

    def build_prompt(self, quotes: QuoteSet, tracked_symbols: Iterable[str]) -> str:
        return build_mood_prompt(self.facts_for(quotes, tracked_symbols))

    async def narrate(self, quotes: QuoteSet, tracked_symbols: Iterable[str]) -> str:
        """Generate one grounded sentence.

        Raises:
            NarrationError: on empty input, generator failure, or when every
                            draft failed the grounding check.
        """
        try:
            facts = self.facts_for(quotes, tracked_symbols)
        except ValueError as exc:
            raise NarrationError(str(exc)) from exc

        prompt = build_mood_prompt(facts)
        logger.debug(
            "Narrating mood: scope=%s change=%.4f movers=%s",
            facts.scope_label, facts.overall_change,
            [m.display_name for m in facts.movers],
        )

        callback = self._observability.as_callback()
        config = {
            "callbacks": [callback] if callback is not None else [],
            "metadata": {"langfuse_tags": ["market-mood"]},
        }
        try:
            result = await self._graph.ainvoke(
                {"facts": facts, "prompt": prompt, "attempts": 0}, config=config
            )
        except Exception as exc:
            raise NarrationError(f"narration graph failed: {exc}") from exc

        narrative = result.get("narrative")
        if narrative:
            return narrative
        if result.get("error"):
            raise NarrationError(result["error"])
        raise NarrationError(
            "generated text failed grounding: " + "; ".join(result.get("violations", []))
        )

    async def narrate_or_fallback(
        self, quotes: QuoteSet, tracked_symbols: Iterable[str]
    ) -> tuple[Optional[str], bool]:
        """Return (sentence, narrated). sentence is None only for an empty QuoteSet."""
        try:
            return await self.narrate(quotes, tracked_symbols), True
        except NarrationError as exc:
            logger.info("Falling back to canned mood sentence: %s", exc)
            return canned_sentence(quotes), False
