import asyncio

import pytest

from fakes import FakeQuoteProvider, provider_quote
from market_mood.application.services.quote_fetcher import QuoteFetcher, validate_symbol
from market_mood.domain.entities.quote import ProviderQuote
from market_mood.domain.errors import (
    FetchTimeoutError,
    InvalidRequestError,
    MissingFieldError,
    SymbolNotFoundError,
    TransportError,
    UpstreamError,
)


def test_fetch_normalizes_symbol_and_builds_quote():
    provider = FakeQuoteProvider({"SPY": provider_quote("SPY", 460, 445, "SPDR S&P 500")})
    quote = asyncio.run(QuoteFetcher(provider).fetch("  spy "))
    assert provider.calls == ["SPY"]
    assert quote.symbol == "SPY"
    assert quote.price == 460
    assert quote.name == "SPDR S&P 500"
    assert quote.display_name == "the S&P 500"


@pytest.mark.parametrize("symbol", ["", "   ", "SP Y", "SPY;DROP", "$$$"])
def test_invalid_symbols_are_rejected_before_any_call(symbol):
    provider = FakeQuoteProvider({})
    with pytest.raises(InvalidRequestError):
        asyncio.run(QuoteFetcher(provider).fetch(symbol))
    assert provider.calls == []


@pytest.mark.parametrize("symbol", ["BRK.B", "^GSPC", "CL=F", "RDS-A"])
def test_exchange_style_symbols_are_accepted(symbol):
    assert validate_symbol(symbol.lower()) == symbol


def test_missing_price_and_previous_close_are_distinguished():
    provider = FakeQuoteProvider({
        "AAA": ProviderQuote("AAA", None, 10.0),
        "BBB": ProviderQuote("BBB", 10.0, None),
        "CCC": ProviderQuote("CCC", 0.0, 10.0),
    })
    fetcher = QuoteFetcher(provider)
    with pytest.raises(MissingFieldError) as no_price:
        asyncio.run(fetcher.fetch("AAA"))
    assert no_price.value.field == "price"
    with pytest.raises(MissingFieldError) as no_close:
        asyncio.run(fetcher.fetch("BBB"))
    assert no_close.value.field == "previous_close"
    with pytest.raises(MissingFieldError):
        asyncio.run(fetcher.fetch("CCC"))


def test_typed_provider_errors_pass_through():
    provider = FakeQuoteProvider({"XYZ": SymbolNotFoundError("XYZ"), "ERR": UpstreamError(503)})
    fetcher = QuoteFetcher(provider)
    with pytest.raises(SymbolNotFoundError):
        asyncio.run(fetcher.fetch("XYZ"))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(fetcher.fetch("ERR"))
    assert exc_info.value.status_code == 503


def test_unexpected_provider_errors_become_transport_errors():
    provider = FakeQuoteProvider({"BOOM": RuntimeError("socket closed")})
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(QuoteFetcher(provider).fetch("BOOM"))
    assert isinstance(exc_info.value.cause, RuntimeError)


def test_slow_provider_hits_the_per_fetch_timeout():
    provider = FakeQuoteProvider(
        {"SLOW": provider_quote("SLOW", 1, 1)}, delays={"SLOW": 5}
    )
    with pytest.raises(FetchTimeoutError):
        asyncio.run(QuoteFetcher(provider, timeout=0.05).fetch("SLOW"))
    assert provider.cancelled == ["SLOW"]


def test_cancellation_is_not_reported_as_a_transport_error():
    provider = FakeQuoteProvider({"SLOW": provider_quote("SLOW", 1, 1)}, delays={"SLOW": 5})

    async def scenario():
        task = asyncio.create_task(QuoteFetcher(provider).fetch("SLOW"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert provider.cancelled == ["SLOW"]


def test_fetch_batch_returns_one_outcome_per_symbol():
    provider = FakeQuoteProvider(
        {
            "SPY": provider_quote("SPY", 460, 445),
            "QQQ": ProviderQuote("QQQ", 390.0, None),
        },
        max_batch_size=10,
    )
    outcomes = asyncio.run(QuoteFetcher(provider).fetch_batch(["spy", "QQQ", "NOPE"]))
    assert list(outcomes) == ["SPY", "QQQ", "NOPE"]
    assert outcomes["SPY"].previous_close == 445
    assert isinstance(outcomes["QQQ"], MissingFieldError)
    assert isinstance(outcomes["NOPE"], SymbolNotFoundError)


def test_fetch_batch_records_batch_failure_for_every_symbol():
    provider = FakeQuoteProvider({"SPY,QQQ": UpstreamError(502)}, max_batch_size=10)
    outcomes = asyncio.run(QuoteFetcher(provider).fetch_batch(["SPY", "QQQ"]))
    assert all(isinstance(o, UpstreamError) for o in outcomes.values())


def test_fetch_batch_records_malformed_symbols_without_calling_for_them():
    provider = FakeQuoteProvider({"SPY": provider_quote("SPY", 460, 445)}, max_batch_size=10)
    outcomes = asyncio.run(QuoteFetcher(provider).fetch_batch(["SPY", "bad sym"]))
    assert provider.batch_calls == [["SPY"]]
    assert isinstance(outcomes["BAD SYM"], InvalidRequestError)
    assert outcomes["SPY"].price == 460


def test_fetch_batch_of_only_malformed_symbols_makes_no_call():
    provider = FakeQuoteProvider({}, max_batch_size=10)
    outcomes = asyncio.run(QuoteFetcher(provider).fetch_batch(["???"]))
    assert provider.batch_calls == []
    assert isinstance(outcomes["???"], InvalidRequestError)
