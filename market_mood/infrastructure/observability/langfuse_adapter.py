"""
Infrastructure adapter: Langfuse -> IObservabilityHandler.

Langfuse is imported lazily inside the methods so the module can be loaded
even when LANGFUSE_* environment variables are not yet set (e.g. during testing).
The SecretsManagerAdapter.load_into_env() call at startup must run before this
adapter is first used.
"""

import os
from typing import Any

from market_mood.domain.ports.observability_port import (
    IObservabilityHandler,
    NullObservabilityHandler,
)


class LangfuseObservabilityHandler(IObservabilityHandler):
    """Wraps the Langfuse LangChain CallbackHandler for narration graph runs."""

    def __init__(self) -> None:
        from langfuse.langchain import CallbackHandler
        self._handler = CallbackHandler()

    def as_callback(self) -> Any:
        """Return the Langfuse CallbackHandler for use in LangGraph run configs."""
        return self._handler

    def flush(self) -> None:
        """Flush pending traces to the Langfuse backend before the process exits."""
        from langfuse import get_client
        get_client().flush()


def create_observability_handler() -> IObservabilityHandler:
    """Langfuse when its keys are configured, otherwise a no-op handler."""
    if os.environ.get("LANGFUSE_PUBLIC_KEY") and os.environ.get("LANGFUSE_SECRET_KEY"):
        return LangfuseObservabilityHandler()
    return NullObservabilityHandler()
