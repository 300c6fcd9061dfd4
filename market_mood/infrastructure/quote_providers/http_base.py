"""
Shared httpx plumbing for HTTP quote providers.

Maps httpx failures onto the domain error taxonomy so every HTTP adapter
reports timeouts, transport failures, non-2xx responses and unreadable
bodies the same way.
"""

import logging
from typing import Any, Optional

import httpx

from market_mood.domain.errors import (
    DecodeError,
    FetchTimeoutError,
    TransportError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

_UA = {"User-Agent": "Mozilla/5.0 (MarketMood/1.0)"}


class HttpQuoteProviderBase:
    """Owns (or borrows) an httpx.AsyncClient and fetches JSON from it."""

    DEFAULT_TIMEOUT: float = 10.0

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """
        Args:
            client:  Optional pre-configured AsyncClient (e.g. with a
                     MockTransport in tests). Owned by the caller when given.
            timeout: Request timeout in seconds for the default client.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=_UA)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(f"Request to {url} timed out", exc) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Request to {url} failed: {exc}", exc) from exc

        if not response.is_success:
            logger.debug("HTTP %s from %s: %s", response.status_code, url, response.text[:200])
            raise UpstreamError(response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Response from {url} is not valid JSON") from exc


def parse_number(value: Any) -> Optional[float]:
    """Vendors send numbers as JSON numbers or strings; anything else is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
