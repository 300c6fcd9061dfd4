"""
LangGraph narration state definition.
langgraph is the orchestration framework and is allowed in the application layer.
"""

from typing import Optional, TypedDict

from market_mood.application.narration.facts import NarrationFacts


class NarrationState(TypedDict, total=False):
    """Shared state threaded through every node in the narration graph.

    facts:      grounding facts the narrative may use.
    prompt:     the full prompt sent to the text generator.
    draft:      the latest (stripped) generator reply.
    attempts:   number of generator calls made so far.
    violations: grounding violations found in the latest draft.
    narrative:  the accepted sentence, set only once a draft passes validation.
    error:      generator failure message; ends the run without a narrative.
    """

    facts: NarrationFacts
    prompt: str
    draft: str
    attempts: int
    violations: list[str]
    narrative: Optional[str]
    error: Optional[str]
