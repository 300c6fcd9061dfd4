"""
FastAPI entry point.

This module is the Composition Root for the HTTP service: the lifespan hook
builds the Container from the environment (unless one is injected, as the
tests do) and the routes only talk to use-cases.

Run locally:
    uvicorn market_mood.infrastructure.entrypoints.fastapi_app:app --reload --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from market_mood.domain.entities.quote import Quote
from market_mood.domain.errors import InvalidRequestError, QuoteError, user_message
from market_mood.infrastructure.config import Settings
from market_mood.infrastructure.entrypoints.container import Container, create_container
from market_mood.infrastructure.logging_config import configure_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------
class QuoteModel(BaseModel):
    symbol: str
    display_name: str
    price: float
    previous_close: float
    change: float
    change_percent: float

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteModel":
        return cls(
            symbol=quote.symbol,
            display_name=quote.display_name,
            price=quote.price,
            previous_close=quote.previous_close,
            change=quote.change,
            change_percent=quote.change_percent,
        )


class QuotesResponse(BaseModel):
    quotes: list[QuoteModel]
    failures: dict[str, str] = Field(default_factory=dict)


class RefreshRequest(BaseModel):
    symbols: Optional[list[str]] = None
    narrate: bool = True


class MoodResponse(BaseModel):
    sentence: Optional[str] = None
    mood: Optional[str] = None
    market_state: Optional[str] = None
    timestamp: Optional[datetime] = None
    narrated: bool = False
    is_stale: bool = False
    is_refreshing: bool = False
    can_retry: bool = False
    error_message: Optional[str] = None
    quotes: list[QuoteModel] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)


class FavoriteRequest(BaseModel):
    symbol: str


class SymbolMatchModel(BaseModel):
    symbol: str
    name: str
    exchange: Optional[str] = None


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def _bootstrap_container() -> Container:
    load_dotenv()
    secret_arn = os.environ.get("MARKET_MOOD_SECRET_ARN")
    if secret_arn:
        from market_mood.infrastructure.secrets.secrets_manager_adapter import (
            SecretsManagerAdapter,
        )
        SecretsManagerAdapter().load_into_env(secret_arn)
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return create_container(settings)


def create_app(container: Optional[Container] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container or _bootstrap_container()
        try:
            yield
        finally:
            await app.state.container.aclose()

    app = FastAPI(title="MarketMood API", lifespan=lifespan)

    def get_container(request: Request) -> Container:
        return request.app.state.container

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/quotes", response_model=QuotesResponse)
    async def get_quotes(
        symbols: Optional[str] = Query(default=None, description="Comma-separated tickers"),
        c: Container = Depends(get_container),
    ):
        requested = symbols.split(",") if symbols else c.favorites.symbols
        try:
            quote_set = await c.get_quotes.execute(requested)
        except InvalidRequestError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except QuoteError as exc:
            raise HTTPException(status_code=502, detail=user_message(exc)) from exc
        return QuotesResponse(
            quotes=[QuoteModel.from_quote(q) for q in quote_set],
            failures={s: user_message(e) for s, e in quote_set.failures.items()},
        )

    @app.post("/mood/refresh", response_model=MoodResponse)
    async def refresh_mood(
        body: Optional[RefreshRequest] = None,
        c: Container = Depends(get_container),
    ):
        body = body or RefreshRequest()
        symbols = body.symbols or c.favorites.symbols
        report = await c.refresh_mood.execute(symbols, narrate=body.narrate)
        if report is None:
            raise HTTPException(status_code=409, detail="A refresh is already in progress.")
        if isinstance(report.error, InvalidRequestError):
            raise HTTPException(status_code=400, detail=str(report.error))
        snapshot = report.snapshot
        return MoodResponse(
            sentence=report.sentence,
            mood=report.bucket.label if report.bucket else None,
            market_state=snapshot.market_state.value if snapshot else None,
            timestamp=snapshot.timestamp if snapshot else None,
            narrated=report.narrated,
            is_stale=report.is_stale,
            can_retry=report.can_retry,
            error_message=report.error_message,
            quotes=[QuoteModel.from_quote(q) for q in report.quotes],
            failures={s: user_message(e) for s, e in report.quotes.failures.items()},
        )

    @app.post("/mood/refresh-request", status_code=202)
    async def request_mood_refresh(c: Container = Depends(get_container)):
        c.refresh_mood.request_refresh()
        return {"status": "requested"}

    @app.get("/mood", response_model=MoodResponse)
    async def get_mood(c: Container = Depends(get_container)):
        await c.refresh_mood.refresh_if_requested(c.favorites.symbols)
        snapshot = c.mood_cache.load()
        if snapshot is None:
            raise HTTPException(status_code=404, detail="No mood has been generated yet.")
        return MoodResponse(
            sentence=snapshot.sentence,
            market_state=snapshot.market_state.value,
            timestamp=snapshot.timestamp,
            is_refreshing=c.mood_cache.is_refreshing(),
        )

    @app.get("/favorites", response_model=list[str])
    async def list_favorites(c: Container = Depends(get_container)):
        return c.favorites.symbols

    @app.post("/favorites", response_model=list[str])
    async def add_favorite(body: FavoriteRequest, c: Container = Depends(get_container)):
        if not body.symbol.strip():
            raise HTTPException(status_code=400, detail="symbol must be a non-empty string")
        try:
            c.favorites.add(body.symbol)
        except InvalidRequestError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return c.favorites.symbols

    @app.delete("/favorites/{symbol}", response_model=list[str])
    async def remove_favorite(symbol: str, c: Container = Depends(get_container)):
        if not c.favorites.remove(symbol):
            raise HTTPException(status_code=404, detail=f"{symbol.upper()} is not a favorite.")
        return c.favorites.symbols

    @app.get("/search", response_model=list[SymbolMatchModel])
    async def search_symbols(
        q: str = Query(default=""),
        limit: int = Query(default=20, ge=1, le=50),
        c: Container = Depends(get_container),
    ):
        if c.search_symbols is None:
            raise HTTPException(status_code=503, detail="Symbol search is not configured.")
        try:
            matches = await c.search_symbols.execute(q, limit=limit)
        except QuoteError as exc:
            raise HTTPException(status_code=502, detail=user_message(exc)) from exc
        return [
            SymbolMatchModel(symbol=m.symbol, name=m.name, exchange=m.exchange)
            for m in matches
        ]

    return app


app = create_app()
