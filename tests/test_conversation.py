import pytest

from yield_agent.conversation import (
    RISK_TOLERANCE,
    TIME_HORIZON,
    ConversationContext,
    ConversationHistory,
    Speaker,
    Turn,
)


def test_context_last_writer_wins() -> None:
    context = ConversationContext()
    context.set(RISK_TOLERANCE, "conservative")
    context.set(RISK_TOLERANCE, "aggressive")
    assert context[RISK_TOLERANCE] == "aggressive"
    assert len(context) == 1


def test_context_snapshot_is_a_copy() -> None:
    context = ConversationContext()
    context.set(TIME_HORIZON, "long")
    snapshot = context.snapshot()
    snapshot[TIME_HORIZON] = "short"
    snapshot["extra"] = 1.0
    assert context.snapshot() == {TIME_HORIZON: "long"}


def test_context_clear_and_defaults() -> None:
    context = ConversationContext()
    context.set(RISK_TOLERANCE, "balanced")
    context.clear()
    assert RISK_TOLERANCE not in context
    assert context.get(RISK_TOLERANCE) is None
    assert context.get(RISK_TOLERANCE, "balanced") == "balanced"


def test_history_starts_with_greeting() -> None:
    history = ConversationHistory("Hi!")
    assert history.turns() == [Turn(Speaker.AGENT, "Hi!")]


def test_history_appends_in_order_and_resets() -> None:
    history = ConversationHistory("Hi!")
    history.record_user("hello")
    history.record_agent("hey")
    assert [turn.speaker for turn in history.turns()] == [Speaker.AGENT, Speaker.USER, Speaker.AGENT]
    assert history.last().text == "hey"
    history.reset()
    assert history.turns() == [Turn(Speaker.AGENT, "Hi!")]


def test_turns_are_immutable() -> None:
    turn = Turn(Speaker.USER, "hello")
    with pytest.raises(AttributeError):
        turn.text = "changed"  # type: ignore[misc]


def test_speaker_values_match_ui_tags() -> None:
    assert Speaker.USER.value == "user"
    assert Speaker.AGENT.value == "agent"


def test_transcript_labels_and_limit() -> None:
    history = ConversationHistory("Hi!")
    history.record_user("hello")
    history.record_agent("hey")
    assert history.transcript() == "AgentX: Hi!\nYou: hello\nAgentX: hey"
    assert history.transcript(limit=1) == "AgentX: hey"
