"""
Port (interface) for the key/value store shared between the service and
any display surface that reads the cached mood.
Infrastructure adapters (e.g. JsonFileKeyValueStore) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class IKeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Return the stored value for *key*, or *default* when absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable *value* under *key*."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*. Missing keys are ignored."""
        ...
