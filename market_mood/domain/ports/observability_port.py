"""
Port (interface) for observability / tracing handlers.
Infrastructure adapters (e.g. LangfuseObservabilityHandler) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class IObservabilityHandler(ABC):
    @abstractmethod
    def as_callback(self) -> Optional[Any]:
        """Return the framework-native callback object, or None when tracing is off."""
        ...

    @abstractmethod
    def flush(self) -> None:
        """Flush any buffered telemetry data to the remote backend."""
        ...


class NullObservabilityHandler(IObservabilityHandler):
    """Used when no tracing backend is configured."""

    def as_callback(self) -> Optional[Any]:
        return None

    def flush(self) -> None:
        return None
