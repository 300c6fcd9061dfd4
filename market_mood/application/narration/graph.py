"""
LangGraph narration graph factory.

Dependency-injection contract:
  - Receives an ITextGenerator; never imports ChatBedrock, langfuse or boto3.
  - langgraph is treated as an orchestration-framework import, acceptable in
    the application layer.

Flow: generate -> validate -> (END | generate again while attempts remain).
A generator failure ends the run immediately with *error* set.
"""

import logging

from langgraph.graph import END, START, StateGraph

from market_mood.application.narration.grounding import find_violations
from market_mood.application.narration.state import NarrationState
from market_mood.domain.ports.text_generator_port import ITextGenerator

logger = logging.getLogger(__name__)


def build_narration_graph(generator: ITextGenerator, max_attempts: int = 2):
    """Build and compile the narration graph.

    Args:
        generator:    ITextGenerator implementation, injected.
        max_attempts: Generator calls allowed before giving up on grounding.

    Returns:
        Compiled LangGraph CompiledStateGraph ready for ainvoke() calls.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    async def generate(state: NarrationState) -> dict:
        """Ask the generator for one sentence."""
        attempts = state.get("attempts", 0) + 1
        try:
            reply = await generator.respond(state["prompt"])
        except Exception as exc:
            logger.info("Text generation failed on attempt %d: %s", attempts, exc)
            return {"attempts": attempts, "error": f"{type(exc).__name__}: {exc}"}
        draft = (reply or "").strip()
        if not draft:
            return {"attempts": attempts, "error": "generator returned an empty reply"}
        return {"attempts": attempts, "draft": draft, "error": None}

    def validate(state: NarrationState) -> dict:
        """Reject drafts that name stocks outside the notable movers."""
        violations = find_violations(state["draft"], state["facts"])
        if violations:
            logger.info("Rejected ungrounded narrative %r: %s", state["draft"], violations)
            return {"violations": violations, "narrative": None}
        return {"violations": [], "narrative": state["draft"]}

    def after_generate(state: NarrationState) -> str:
        return END if state.get("error") else "validate"

    def after_validate(state: NarrationState) -> str:
        if state.get("narrative"):
            return END
        if state.get("attempts", 0) < max_attempts:
            return "generate"
        return END

    workflow = StateGraph(NarrationState)
    workflow.add_node("generate", generate)
    workflow.add_node("validate", validate)
    workflow.add_edge(START, "generate")
    workflow.add_conditional_edges("generate", after_generate, ["validate", END])
    workflow.add_conditional_edges("validate", after_validate, ["generate", END])
    return workflow.compile()
