import asyncio

import pytest

from fakes import FakeTextGenerator, quote, quote_set
from market_mood.application.narration.facts import (
    CUSTOM_SCOPE,
    MARKET_SCOPE,
    gather_facts,
    scope_label,
)
from market_mood.application.narration.grounding import find_violations, is_grounded
from market_mood.application.narration.narrator import MoodNarrator
from market_mood.application.narration.prompts import build_mood_prompt
from market_mood.domain.entities.mood import MoodBucket
from market_mood.domain.errors import NarrationError

TRACKED = ["AAPL", "TSLA", "MSFT"]


@pytest.fixture
def custom_quotes():
    # Tesla is the only notable mover.
    return quote_set(
        quote("AAPL", 100.2, 100.0),
        quote("TSLA", 97.0, 100.0),
        quote("MSFT", 100.1, 100.0),
    )


@pytest.fixture
def quiet_quotes():
    return quote_set(
        quote("SPY", 100.1, 100.0),
        quote("QQQ", 99.9, 100.0),
        quote("DIA", 100.2, 100.0),
    )


def facts_for(quotes, tracked=TRACKED):
    return gather_facts(quotes, tracked, threshold=0.015, cap=2)


# ---------------------------------------------------------------------------
# Facts and prompt
# ---------------------------------------------------------------------------

def test_scope_label_is_the_market_only_for_the_index_set():
    assert scope_label(["dia", "SPY", "QQQ"]) == MARKET_SCOPE
    assert scope_label(["SPY", "QQQ"]) == CUSTOM_SCOPE
    assert scope_label(["SPY", "QQQ", "DIA", "AAPL"]) == CUSTOM_SCOPE


def test_gather_facts_counts_and_movers(custom_quotes):
    facts = facts_for(custom_quotes)
    assert facts.scope_label == CUSTOM_SCOPE
    assert (facts.num_up, facts.num_down, facts.total) == (2, 1, 3)
    assert [m.symbol for m in facts.movers] == ["TSLA"]
    assert facts.bucket is MoodBucket.CAUTIOUS


def test_gather_facts_rejects_empty_quotes():
    with pytest.raises(ValueError):
        facts_for(quote_set())


def test_prompt_lists_movers_with_direction(custom_quotes):
    prompt = build_mood_prompt(facts_for(custom_quotes))
    assert '"name": "Tesla"' in prompt
    assert '"direction": "down"' in prompt
    assert "scope_label: your stocks" in prompt
    assert "Tesla is DOWN 3.00%" in prompt


def test_prompt_with_no_movers_forbids_naming_stocks(quiet_quotes):
    prompt = build_mood_prompt(facts_for(quiet_quotes, ["SPY", "QQQ", "DIA"]))
    assert "notable_movers: []" in prompt
    assert "do not mention any specific stock names" in prompt
    assert "scope_label: the market" in prompt


# ---------------------------------------------------------------------------
# Grounding
# ---------------------------------------------------------------------------

def test_mentioning_only_movers_is_grounded(custom_quotes):
    text = "Your stocks keep their balance even as Tesla (▼3.00%) stumbles."
    assert is_grounded(text, facts_for(custom_quotes))


def test_mentioning_a_non_mover_is_rejected(custom_quotes):
    violations = find_violations(
        "Your stocks hold steady as Apple (▲0.20%) shines.", facts_for(custom_quotes)
    )
    assert violations == ["mentions Apple, which is not a notable mover"]


def test_ticker_of_a_non_mover_is_rejected(custom_quotes):
    assert not is_grounded("Your stocks idle while MSFT naps.", facts_for(custom_quotes))


def test_names_outside_the_tracked_list_are_rejected(custom_quotes):
    assert not is_grounded("Your stocks drift like the Dow on a Sunday.", facts_for(custom_quotes))


def test_wrong_arrow_for_a_mover_is_rejected(custom_quotes):
    violations = find_violations("Your stocks cheer as Tesla (▲3.00%) rallies.", facts_for(custom_quotes))
    assert len(violations) == 1
    assert "Tesla" in violations[0]


def test_any_stock_name_is_rejected_when_there_are_no_movers(quiet_quotes):
    facts = facts_for(quiet_quotes, ["SPY", "QQQ", "DIA"])
    assert facts.movers == ()
    assert is_grounded("The market naps through a calm, flat session.", facts)
    assert not is_grounded("The market naps while the Nasdaq dozes.", facts)
    assert not is_grounded("The market naps while Nvidia dozes.", facts)


# ---------------------------------------------------------------------------
# Narrator
# ---------------------------------------------------------------------------

def test_narrator_returns_grounded_reply(custom_quotes):
    generator = FakeTextGenerator("  Your stocks shrug while Tesla (▼3.00%) slides.  ")
    sentence, narrated = asyncio.run(
        MoodNarrator(generator).narrate_or_fallback(custom_quotes, TRACKED)
    )
    assert sentence == "Your stocks shrug while Tesla (▼3.00%) slides."
    assert narrated is True
    assert len(generator.prompts) == 1


def test_narrator_retries_after_ungrounded_draft(custom_quotes):
    generator = FakeTextGenerator(
        "Your stocks coast as Microsoft (▲0.10%) leads.",
        "Your stocks coast as Tesla (▼3.00%) lags.",
    )
    sentence = asyncio.run(MoodNarrator(generator).narrate(custom_quotes, TRACKED))
    assert sentence == "Your stocks coast as Tesla (▼3.00%) lags."
    assert len(generator.prompts) == 2


def test_ungrounded_replies_fall_back_to_canned_sentence(quiet_quotes):
    generator = FakeTextGenerator("The market naps while Apple (▲5%) soars.")
    narrator = MoodNarrator(generator, max_attempts=2)
    sentence, narrated = asyncio.run(
        narrator.narrate_or_fallback(quiet_quotes, ["SPY", "QQQ", "DIA"])
    )
    assert narrated is False
    assert sentence == MoodBucket.STEADY.canned_sentence
    assert len(generator.prompts) == 2


def test_generator_failure_falls_back_without_retry(custom_quotes):
    generator = FakeTextGenerator(RuntimeError("throttled"))
    narrator = MoodNarrator(generator)
    with pytest.raises(NarrationError):
        asyncio.run(narrator.narrate(custom_quotes, TRACKED))
    sentence, narrated = asyncio.run(narrator.narrate_or_fallback(custom_quotes, TRACKED))
    assert (sentence, narrated) == (MoodBucket.CAUTIOUS.canned_sentence, False)


def test_empty_reply_is_a_narration_error(custom_quotes):
    with pytest.raises(NarrationError):
        asyncio.run(MoodNarrator(FakeTextGenerator("   ")).narrate(custom_quotes, TRACKED))


def test_empty_quote_set_cannot_be_narrated():
    narrator = MoodNarrator(FakeTextGenerator("unused"))
    with pytest.raises(NarrationError):
        asyncio.run(narrator.narrate(quote_set(), TRACKED))
    assert asyncio.run(narrator.narrate_or_fallback(quote_set(), TRACKED)) == (None, False)
