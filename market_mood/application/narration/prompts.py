"""
Prompts for the mood narrator.
Keeping the prompt in the application layer keeps it close to the grounding
rules it encodes, while remaining independent from any infrastructure SDK.

The generator is known to invent stock moves, so the prompt spells out the
only movers it may mention and says so explicitly when there are none.
"""

import json

from market_mood.application.narration.facts import NarrationFacts

SYSTEM_PROMPT = """You write one short, witty line that reflects the day's mood for a set of stocks or indices.

CRITICAL RULES - READ CAREFULLY:
1. You MUST ONLY reference stocks/companies that are explicitly listed in the notable_movers array.
2. If notable_movers is empty [], you must NOT mention any specific stock names.
3. When mentioning a stock from notable_movers, you MUST use the EXACT direction (up/down) and percentage from the array.
4. DO NOT guess, assume, or invent stock movements. Use ONLY the data provided.

Priorities: (1) correct sentiment; (2) concise; (3) lightly witty phrasing, no forced jokes or anthropomorphizing.

Prefer "your stocks" if the user is tracking a custom list; use "the market" if it's the default broad indices set.

Don't explain your reasoning. Output exactly one sentence."""

EMPTY_MOVERS_INSTRUCTION = (
    "The notable_movers array is EMPTY []. You MUST NOT name any individual stock: "
    "do not mention any specific stock names. Only describe the overall mood."
)

USER_PROMPT_TEMPLATE = """Context:

scope_label: {scope_label}
mood: {mood}
overall_change_pct: {overall_change_pct}
num_up: {num_up}, num_down: {num_down}, total: {total}
notable_movers: {movers_json}

{movers_instruction}

Style: witty, light, human; avoid clichés; 20-35 words; US English names (e.g. "Microsoft", "the Dow"). When mentioning a stock, include the direction and percentage like "Tesla (▼2.05%)" or "Nvidia (▲0.33%)".

Rules:
- Lead with the scope_label ("{scope_label}").
- Summarize overall mood in one clause.
- ONLY if notable_movers is not empty, optionally add a second clause mentioning at most {cap} stocks from the notable_movers array WITH their correct direction and percentage.
- If notable_movers is empty [], do not mention any specific stock names.
- Use ▲ for stocks that are up, ▼ for stocks that are down.
- If overall_change_pct is between -0.15 and +0.15, treat as "flat".
- CRITICAL: Use ONLY the direction and percentage values from the notable_movers array. Do NOT guess or assume.

Output: one sentence only."""


def movers_json(facts: NarrationFacts) -> str:
    return json.dumps(
        [
            {
                "name": m.display_name,
                "pct": round(m.change_percent * 100, 2),
                "direction": m.direction.value,
            }
            for m in facts.movers
        ],
        ensure_ascii=False,
    )


def movers_instruction(facts: NarrationFacts) -> str:
    if not facts.movers:
        return EMPTY_MOVERS_INSTRUCTION
    described = ", ".join(
        f"{m.display_name} is {m.direction.value.upper()} {abs(m.change_percent * 100):.2f}%"
        for m in facts.movers
    )
    return (
        f"The notable_movers array contains: {described}. You may mention these stocks, "
        "but you MUST state the correct direction (up/down) and percentage. "
        "Use ▲ for up, ▼ for down. Do not mention any other stock."
    )


def build_mood_prompt(facts: NarrationFacts) -> str:
    """Combine system rules and context into the single prompt string the generator takes."""
    user_prompt = USER_PROMPT_TEMPLATE.format(
        scope_label=facts.scope_label,
        mood=facts.bucket.label,
        overall_change_pct=f"{facts.overall_change * 100:.2f}",
        num_up=facts.num_up,
        num_down=facts.num_down,
        total=facts.total,
        movers_json=movers_json(facts),
        movers_instruction=movers_instruction(facts),
        cap=len(facts.movers),
    )
    return f"{SYSTEM_PROMPT}\n\n---\n\n{user_prompt}"
