"""
Port (interface) for text-generation capabilities.
Infrastructure adapters (e.g. BedrockTextGenerator) must implement this interface.
"""

from abc import ABC, abstractmethod


class ITextGenerator(ABC):
    @abstractmethod
    async def respond(self, prompt: str) -> str:
        """Return the model's reply to a single prompt string.

        May raise anything: callers treat every failure mode the same way.
        """
        ...
