"""
Composition Root helpers shared by the FastAPI app and the CLI.

This module wires infrastructure adapters (quote providers, Bedrock, Langfuse,
the JSON key/value store) into the application services and use-cases once,
so each entry point only has to ask for a Container.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from market_mood.application.narration.narrator import MoodNarrator
from market_mood.application.services.favorites import FavoritesService
from market_mood.application.services.mood_cache import MoodCache
from market_mood.application.services.quote_aggregator import QuoteAggregator
from market_mood.application.services.quote_fetcher import QuoteFetcher
from market_mood.application.use_cases.get_quotes import GetQuotesUseCase
from market_mood.application.use_cases.refresh_mood import RefreshMoodUseCase, RefreshPolicy
from market_mood.application.use_cases.search_symbols import SearchSymbolsUseCase
from market_mood.domain.ports.key_value_store_port import IKeyValueStore
from market_mood.domain.ports.observability_port import IObservabilityHandler
from market_mood.domain.ports.quote_provider_port import IQuoteProvider
from market_mood.domain.ports.symbol_search_port import ISymbolSearch
from market_mood.domain.ports.text_generator_port import ITextGenerator
from market_mood.infrastructure.config import Settings
from market_mood.infrastructure.observability.langfuse_adapter import (
    create_observability_handler,
)
from market_mood.infrastructure.quote_providers.alpha_vantage_adapter import (
    AlphaVantageQuoteProvider,
)
from market_mood.infrastructure.quote_providers.fmp_adapter import FMPQuoteProvider
from market_mood.infrastructure.quote_providers.yahoo_adapter import YahooQuoteProvider
from market_mood.infrastructure.quote_providers.yfinance_adapter import YFinanceQuoteProvider
from market_mood.infrastructure.storage.key_value_store import JsonFileKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    provider: IQuoteProvider
    store: IKeyValueStore
    observability: IObservabilityHandler
    get_quotes: GetQuotesUseCase
    refresh_mood: RefreshMoodUseCase
    search_symbols: Optional[SearchSymbolsUseCase]
    favorites: FavoritesService
    mood_cache: MoodCache
    closables: list = field(default_factory=list)

    async def aclose(self) -> None:
        for resource in [self.provider, *self.closables]:
            closer = getattr(resource, "aclose", None)
            if closer is not None:
                await closer()
        self.observability.flush()


def create_quote_provider(settings: Settings) -> IQuoteProvider:
    """Instantiate the adapter named by settings.provider."""
    if settings.provider == "fmp":
        return FMPQuoteProvider(api_key=settings.fmp_api_key, timeout=settings.fetch_timeout)
    if settings.provider == "alphavantage":
        return AlphaVantageQuoteProvider(
            api_key=settings.alphavantage_api_key, timeout=settings.fetch_timeout
        )
    if settings.provider == "yfinance":
        return YFinanceQuoteProvider()
    return YahooQuoteProvider(timeout=settings.fetch_timeout)


def create_text_generator(settings: Settings) -> ITextGenerator:
    from market_mood.infrastructure.llm.bedrock_adapter import BedrockTextGenerator

    return BedrockTextGenerator(
        model_id=settings.bedrock_model_id, region=settings.aws_region
    )


def create_container(
    settings: Settings,
    provider: Optional[IQuoteProvider] = None,
    store: Optional[IKeyValueStore] = None,
    generator: Optional[ITextGenerator] = None,
    observability: Optional[IObservabilityHandler] = None,
    search: Optional[ISymbolSearch] = None,
) -> Container:
    """Wire every dependency for *settings*.

    Any adapter passed explicitly replaces the one *settings* would build,
    which is how tests swap in fakes.
    """
    provider = provider or create_quote_provider(settings)
    store = store or JsonFileKeyValueStore(settings.store_path)
    observability = observability or create_observability_handler()

    fetcher = QuoteFetcher(provider, timeout=settings.fetch_timeout)
    aggregator = QuoteAggregator(
        fetcher,
        aggregate_timeout=settings.aggregate_timeout,
        max_concurrency=settings.max_concurrency,
    )

    narrator = None
    if settings.narration_enabled:
        narrator = MoodNarrator(
            generator or create_text_generator(settings),
            observability=observability,
            threshold=settings.mover_threshold,
            cap=settings.mover_cap,
            max_attempts=settings.narration_attempts,
        )

    mood_cache = MoodCache(store)
    if search is None and isinstance(provider, FMPQuoteProvider):
        search = provider
    elif search is None and settings.fmp_api_key:
        search = FMPQuoteProvider(api_key=settings.fmp_api_key, timeout=settings.fetch_timeout)

    logger.info(
        "MarketMood wired: provider=%s narration=%s policy=%s",
        type(provider).__name__, narrator is not None, settings.refresh_policy,
    )
    return Container(
        settings=settings,
        provider=provider,
        store=store,
        observability=observability,
        get_quotes=GetQuotesUseCase(aggregator),
        refresh_mood=RefreshMoodUseCase(
            aggregator,
            narrator=narrator,
            cache=mood_cache,
            policy=RefreshPolicy(settings.refresh_policy),
        ),
        search_symbols=SearchSymbolsUseCase(search) if search is not None else None,
        favorites=FavoritesService(store),
        mood_cache=mood_cache,
        closables=[search] if isinstance(search, FMPQuoteProvider) and search is not provider else [],
    )
