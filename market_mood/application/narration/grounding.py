"""
Post-generation grounding check for mood narratives.
Pure Python: no I/O.

A narrative is rejected when it names a symbol or company from the known
universe that is not a notable mover, or gives a mover the wrong arrow.
The known universe is every tracked or quoted symbol plus the common-name
table, each with its ticker, common name and provider-supplied name.
"""

import re
from typing import Iterable

from market_mood.application.narration.facts import NarrationFacts
from market_mood.domain.entities.mood import Direction
from market_mood.domain.entities.quote import normalize_symbol
from market_mood.domain.entities.symbol_names import COMMON_NAMES, common_name

_BOUNDARY_BEFORE = r"(?<![A-Za-z0-9])"
_BOUNDARY_AFTER = r"(?![A-Za-z0-9])"


def _strip_article(name: str) -> str:
    return name[4:] if name.lower().startswith("the ") else name


def _aliases(symbol: str, provider_name: str | None = None) -> tuple[set[str], set[str]]:
    """Return (tickers, names) a narrative could use to refer to *symbol*."""
    names: set[str] = set()
    for name in (common_name(symbol), provider_name):
        if name:
            names.add(_strip_article(name).strip())
    return {symbol}, {n for n in names if n}


def _mentions(text: str, alias: str, case_sensitive: bool) -> bool:
    pattern = _BOUNDARY_BEFORE + re.escape(alias) + _BOUNDARY_AFTER
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.search(pattern, text, flags) is not None


def _universe(facts: NarrationFacts) -> dict[str, tuple[set[str], set[str]]]:
    provider_names = {q.symbol: q.name for q in facts.quotes}
    symbols: Iterable[str] = (
        set(COMMON_NAMES) | set(facts.tracked_symbols) | set(provider_names)
    )
    return {
        normalize_symbol(s): _aliases(normalize_symbol(s), provider_names.get(s))
        for s in symbols
    }


def find_violations(text: str, facts: NarrationFacts) -> list[str]:
    """List every grounding violation in *text*; empty means the text is grounded."""
    universe = _universe(facts)
    mover_symbols = {m.symbol for m in facts.movers}

    allowed_tickers: set[str] = set()
    allowed_names: set[str] = set()
    for symbol in mover_symbols:
        tickers, names = universe.get(symbol, ({symbol}, set()))
        allowed_tickers |= tickers
        allowed_names |= {n.lower() for n in names}
    for mover in facts.movers:
        allowed_names.add(_strip_article(mover.display_name).lower())

    violations: list[str] = []
    for symbol, (tickers, names) in sorted(universe.items()):
        if symbol in mover_symbols:
            continue
        for ticker in tickers - allowed_tickers:
            if _mentions(text, ticker, case_sensitive=True):
                violations.append(f"mentions {ticker}, which is not a notable mover")
        for name in names:
            if name.lower() in allowed_names:
                continue
            if _mentions(text, name, case_sensitive=False):
                violations.append(f"mentions {name}, which is not a notable mover")

    for mover in facts.movers:
        expected = mover.direction.arrow
        wrong = Direction.DOWN.arrow if mover.direction is Direction.UP else Direction.UP.arrow
        labels = {mover.symbol, _strip_article(mover.display_name)}
        for label in labels:
            pattern = re.escape(label) + r"\s*\(?\s*([▲▼])"
            for match in re.finditer(pattern, text, re.IGNORECASE):
                if match.group(1) == wrong:
                    violations.append(
                        f"gives {label} {wrong} but it moved {mover.direction.value} ({expected})"
                    )
    return sorted(set(violations))


def is_grounded(text: str, facts: NarrationFacts) -> bool:
    return not find_violations(text, facts)
