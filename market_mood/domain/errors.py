"""
Domain error taxonomy for quote fetching and mood narration.
Zero external dependencies.

The split lets callers tell a bad ticker apart from a transient outage;
retry and backoff policy belong to the caller, never to the fetch layer.
"""

from typing import Optional


class QuoteError(Exception):
    """Base class for every failure of a single quote fetch."""

    is_transient: bool = False


class InvalidRequestError(QuoteError):
    """A well-formed request cannot be built for the given symbol(s)."""


class TransportError(QuoteError):
    """Network, DNS or TLS failure. The underlying cause is kept in *cause*."""

    is_transient = True

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class FetchTimeoutError(TransportError):
    """The bounded per-fetch (or aggregate) timeout elapsed."""


class UpstreamError(QuoteError):
    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Upstream responded with HTTP {status_code}")
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:  # type: ignore[override]
        return self.status_code >= 500 or self.status_code == 429


class DecodeError(QuoteError):
    """The response body does not match the expected schema."""


class SymbolNotFoundError(QuoteError):
    def __init__(self, symbol: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"No market data for symbol: {symbol!r}")
        self.symbol = symbol


class MissingFieldError(QuoteError):
    def __init__(self, symbol: str, field: str) -> None:
        super().__init__(f"Missing or non-numeric {field!r} for symbol: {symbol!r}")
        self.symbol = symbol
        self.field = field


class NarrationError(Exception):
    """Text generation failed, was unavailable, or produced ungrounded output."""


def user_message(error: BaseException) -> str:
    """Human-readable text for a fetch failure shown next to the retry action."""
    if isinstance(error, InvalidRequestError):
        return "Unable to build the quote request. Check the symbols and try again."
    if isinstance(error, FetchTimeoutError):
        return "The quote service took too long to answer. Please try again later."
    if isinstance(error, TransportError):
        return "Could not reach the quote service. Check your connection and try again."
    if isinstance(error, UpstreamError):
        return f"Received an unexpected response ({error.status_code}). Please try again later."
    if isinstance(error, DecodeError):
        return "The quote service sent data we could not read. Please try again later."
    if isinstance(error, SymbolNotFoundError):
        return f"Missing market data for {error.symbol}."
    if isinstance(error, MissingFieldError):
        if error.field == "previous_close":
            return f"Missing prior close data for {error.symbol}."
        return f"Missing price data for {error.symbol}."
    return "Something went wrong while fetching the market data."
