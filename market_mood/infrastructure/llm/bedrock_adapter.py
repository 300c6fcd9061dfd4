"""
Infrastructure adapter: Amazon Bedrock (ChatBedrock) -> ITextGenerator.
All ChatBedrock / langchain_aws details are confined here.
"""

import os
from typing import Any, Optional

from langchain_aws import ChatBedrock
from langchain_core.messages import HumanMessage

from market_mood.domain.ports.text_generator_port import ITextGenerator


class BedrockTextGenerator(ITextGenerator):
    """Wraps ChatBedrock and exposes the ITextGenerator interface."""

    MODEL_ID = "us.amazon.nova-lite-v1:0"

    def __init__(
        self,
        model_id: Optional[str] = None,
        region: Optional[str] = None,
        temperature: float = 0.7,
        _runnable: Any = None,
    ) -> None:
        """
        Args:
            model_id:    Bedrock model id; defaults to MODEL_ID.
            region:      AWS region; defaults to AWS_DEFAULT_REGION or us-east-1.
            temperature: Sampling temperature; a little variety keeps the line witty.
            _runnable:   Optional pre-configured Runnable (used by tests). Pass
                         nothing for normal instantiation.
        """
        if _runnable is not None:
            self._llm = _runnable
        else:
            self._llm = ChatBedrock(
                model=model_id or self.MODEL_ID,
                model_kwargs={"temperature": temperature},
                region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
            )

    async def respond(self, prompt: str) -> str:
        message = await self._llm.ainvoke([HumanMessage(content=prompt)])
        content = message.content if hasattr(message, "content") else message
        if isinstance(content, list):
            # Some Bedrock models return content blocks instead of a plain string.
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )
        return str(content).strip()
