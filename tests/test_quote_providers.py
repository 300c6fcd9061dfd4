import asyncio
from types import SimpleNamespace

import httpx
import pytest

from market_mood.application.services.quote_fetcher import QuoteFetcher
from market_mood.domain.errors import (
    DecodeError,
    FetchTimeoutError,
    MissingFieldError,
    SymbolNotFoundError,
    TransportError,
    UpstreamError,
)
from market_mood.infrastructure.quote_providers.alpha_vantage_adapter import (
    AlphaVantageQuoteProvider,
)
from market_mood.infrastructure.quote_providers.fmp_adapter import FMPQuoteProvider
from market_mood.infrastructure.quote_providers.http_base import parse_number
from market_mood.infrastructure.quote_providers.yahoo_adapter import YahooQuoteProvider
from market_mood.infrastructure.quote_providers.yfinance_adapter import YFinanceQuoteProvider


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_client(payload, status_code=200, seen=None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return mock_client(handler)


# ---------------------------------------------------------------------------
# Shared HTTP error mapping
# ---------------------------------------------------------------------------

def test_http_timeout_maps_to_fetch_timeout():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    provider = YahooQuoteProvider(client=mock_client(handler))
    with pytest.raises(FetchTimeoutError):
        asyncio.run(provider.get_quote("SPY"))


def test_connection_failure_maps_to_transport_error():
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    provider = YahooQuoteProvider(client=mock_client(handler))
    with pytest.raises(TransportError) as exc_info:
        asyncio.run(provider.get_quote("SPY"))
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


@pytest.mark.parametrize("status_code, transient", [(404, False), (429, True), (503, True)])
def test_non_success_status_maps_to_upstream_error(status_code, transient):
    provider = YahooQuoteProvider(client=json_client({}, status_code=status_code))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(provider.get_quote("SPY"))
    assert exc_info.value.status_code == status_code
    assert exc_info.value.is_transient is transient


def test_non_json_body_maps_to_decode_error():
    client = mock_client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(DecodeError):
        asyncio.run(YahooQuoteProvider(client=client).get_quote("SPY"))


@pytest.mark.parametrize(
    "raw, expected",
    [(1.5, 1.5), ("2.25", 2.25), (" 0.5% ", 0.5), ("", None), ("n/a", None), (None, None), (True, None)],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


# ---------------------------------------------------------------------------
# Yahoo
# ---------------------------------------------------------------------------

YAHOO_PAYLOAD = {
    "quoteResponse": {
        "result": [
            {
                "symbol": "SPY",
                "regularMarketPrice": 460.1,
                "regularMarketPreviousClose": 455.0,
                "longName": "SPDR S&P 500 ETF Trust",
            },
            {"symbol": "QQQ", "regularMarketPrice": 390.0, "shortName": "Invesco QQQ"},
        ],
        "error": None,
    }
}


def test_yahoo_batch_request_and_parse():
    seen = []
    provider = YahooQuoteProvider(client=json_client(YAHOO_PAYLOAD, seen=seen))
    quotes = asyncio.run(provider.get_quotes(["SPY", "QQQ", "DIA"]))

    assert seen[0].url.params["symbols"] == "SPY,QQQ,DIA"
    assert set(quotes) == {"SPY", "QQQ"}
    assert quotes["SPY"].price == 460.1
    assert quotes["SPY"].name == "SPDR S&P 500 ETF Trust"
    assert quotes["QQQ"].previous_close is None
    assert quotes["QQQ"].name == "Invesco QQQ"


def test_yahoo_single_quote_missing_from_result():
    provider = YahooQuoteProvider(client=json_client({"quoteResponse": {"result": []}}))
    with pytest.raises(SymbolNotFoundError):
        asyncio.run(provider.get_quote("NOPE"))


@pytest.mark.parametrize(
    "payload",
    [{"finance": {}}, {"quoteResponse": {"result": {}}}, {"quoteResponse": {"result": [{}]}}, []],
)
def test_yahoo_unexpected_shapes_are_decode_errors(payload):
    provider = YahooQuoteProvider(client=json_client(payload))
    with pytest.raises(DecodeError):
        asyncio.run(provider.get_quotes(["SPY"]))


# ---------------------------------------------------------------------------
# Financial Modeling Prep
# ---------------------------------------------------------------------------

def test_fmp_quote():
    seen = []
    payload = [{"symbol": "AAPL", "name": "Apple Inc.", "price": 232.5, "previousClose": 230.0}]
    provider = FMPQuoteProvider(api_key="demo", client=json_client(payload, seen=seen))
    quote = asyncio.run(provider.get_quote("AAPL"))

    assert seen[0].url.path == "/stable/quote"
    assert seen[0].url.params["apikey"] == "demo"
    assert (quote.price, quote.previous_close, quote.name) == (232.5, 230.0, "Apple Inc.")


def test_fmp_empty_list_is_symbol_not_found():
    provider = FMPQuoteProvider(api_key="demo", client=json_client([]))
    with pytest.raises(SymbolNotFoundError):
        asyncio.run(provider.get_quote("ZZZZ"))


def test_fmp_error_message_body():
    payload = {"Error Message": "Limit Reach. Please upgrade your plan."}
    provider = FMPQuoteProvider(api_key="demo", client=json_client(payload))
    with pytest.raises(SymbolNotFoundError) as exc_info:
        asyncio.run(provider.get_quote("AAPL"))
    assert "Limit Reach" in str(exc_info.value)


def test_fmp_search():
    seen = []
    payload = [
        {"symbol": "tsla", "name": "Tesla, Inc.", "exchange": "NASDAQ"},
        {"symbol": "TSLL", "name": "Direxion Daily TSLA Bull 2X", "exchangeFullName": "NASDAQ Global"},
        {"name": "no symbol"},
    ]
    provider = FMPQuoteProvider(api_key="demo", client=json_client(payload, seen=seen))
    matches = asyncio.run(provider.search("tesla", limit=5))

    assert seen[0].url.path == "/stable/search-symbol"
    assert seen[0].url.params["query"] == "tesla"
    assert [m.symbol for m in matches] == ["TSLA", "TSLL"]
    assert matches[1].exchange == "NASDAQ Global"


# ---------------------------------------------------------------------------
# Alpha Vantage
# ---------------------------------------------------------------------------

def test_alpha_vantage_global_quote():
    payload = {
        "Global Quote": {
            "01. symbol": "MSFT",
            "05. price": "415.2600",
            "08. previous close": "410.0000",
            "10. change percent": "1.2829%",
        }
    }
    seen = []
    provider = AlphaVantageQuoteProvider(api_key="demo", client=json_client(payload, seen=seen))
    quote = asyncio.run(provider.get_quote("MSFT"))

    assert seen[0].url.params["function"] == "GLOBAL_QUOTE"
    assert (quote.symbol, quote.price, quote.previous_close) == ("MSFT", 415.26, 410.0)


@pytest.mark.parametrize(
    "payload",
    [
        {"Global Quote": {}},
        {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute."},
        {"Information": "The demo API key is for demo purposes only."},
    ],
)
def test_alpha_vantage_empty_or_rate_limited(payload):
    provider = AlphaVantageQuoteProvider(api_key="demo", client=json_client(payload))
    with pytest.raises(SymbolNotFoundError):
        asyncio.run(provider.get_quote("MSFT"))


def test_alpha_vantage_missing_envelope_is_decode_error():
    provider = AlphaVantageQuoteProvider(api_key="demo", client=json_client({"foo": 1}))
    with pytest.raises(DecodeError):
        asyncio.run(provider.get_quote("MSFT"))


# ---------------------------------------------------------------------------
# yfinance
# ---------------------------------------------------------------------------

class FakeTicker:
    def __init__(self, fast_info=None, info=None, fast_info_error=None):
        self._fast_info = fast_info
        self._fast_info_error = fast_info_error
        self.info = info or {}

    @property
    def fast_info(self):
        if self._fast_info_error is not None:
            raise self._fast_info_error
        return self._fast_info


def test_yfinance_reads_fast_info():
    ticker = FakeTicker(fast_info=SimpleNamespace(last_price=101.23457, previous_close=100.0))
    provider = YFinanceQuoteProvider(ticker_factory=lambda symbol: ticker)
    quote = asyncio.run(provider.get_quote("NVDA"))
    assert (quote.symbol, quote.price, quote.previous_close) == ("NVDA", 101.23457, 100.0)


def test_yfinance_falls_back_to_info():
    ticker = FakeTicker(
        fast_info=SimpleNamespace(last_price=None, previous_close=None),
        info={"currentPrice": 50.0, "previousClose": 49.0, "longName": "Example Corp"},
    )
    quote = asyncio.run(YFinanceQuoteProvider(lambda symbol: ticker).get_quote("EXM"))
    assert (quote.price, quote.previous_close, quote.name) == (50.0, 49.0, "Example Corp")


def test_yfinance_unknown_symbol():
    ticker = FakeTicker(fast_info_error=KeyError("currentTradingPeriod"))
    with pytest.raises(SymbolNotFoundError):
        asyncio.run(YFinanceQuoteProvider(lambda symbol: ticker).get_quote("ZZZZ"))


def test_yfinance_other_failures_are_transport_errors():
    ticker = FakeTicker(fast_info_error=ConnectionError("reset by peer"))
    with pytest.raises(TransportError):
        asyncio.run(YFinanceQuoteProvider(lambda symbol: ticker).get_quote("NVDA"))


def test_yfinance_non_numeric_info_is_a_missing_field():
    ticker = FakeTicker(
        fast_info=SimpleNamespace(last_price=None, previous_close=None),
        info={"currentPrice": "n/a", "previousClose": 49.0},
    )
    fetcher = QuoteFetcher(YFinanceQuoteProvider(lambda symbol: ticker))
    with pytest.raises(MissingFieldError) as exc_info:
        asyncio.run(fetcher.fetch("EXM"))
    assert exc_info.value.field == "price"
