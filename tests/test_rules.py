from typing import Optional

import pytest

from yield_agent.conversation import (
    INVESTMENT_AMOUNT,
    INVESTMENT_CURRENCY,
    LAST_PROTOCOL,
    RISK_TOLERANCE,
    TIME_HORIZON,
    ConversationContext,
)
from yield_agent.rules import (
    PORTFOLIO_ALLOCATIONS,
    PatternRuleSet,
    Rule,
    allocation_frame,
    classify_risk_tolerance,
    classify_time_horizon,
    default_rules,
    investment_amount_rule,
    parse_investment_amount,
    portfolio_recommendation_rule,
    risk_tolerance_rule,
    specific_protocol_rule,
    time_horizon_rule,
)


def test_default_rule_order() -> None:
    assert PatternRuleSet().names() == [
        "risk_tolerance",
        "investment_amount",
        "time_horizon",
        "specific_protocol",
        "portfolio_recommendation",
    ]
    assert [rule.name for rule in default_rules()] == PatternRuleSet().names()


@pytest.mark.parametrize(
    "message, tier",
    [
        ("I have a low risk tolerance", "conservative"),
        ("Keep it SAFE please", "conservative"),
        ("I'm an aggressive investor", "aggressive"),
        ("high risk is fine", "aggressive"),
        ("something moderate", "balanced"),
        ("medium risk, balanced mix", "balanced"),
        ("risk", None),
        ("what is the risk here?", None),
        ("a balanced mix", None),
        ("hello", None),
    ],
)
def test_classify_risk_tolerance(message: str, tier: Optional[str]) -> None:
    assert classify_risk_tolerance(message) == tier


def test_risk_rule_declines_without_touching_context() -> None:
    context = ConversationContext()
    assert risk_tolerance_rule("tell me about risk", context) is None
    assert len(context) == 0


def test_risk_rule_sets_context() -> None:
    context = ConversationContext()
    reply = risk_tolerance_rule("I'm conservative", context)
    assert reply is not None and reply.startswith("I understand you prefer a conservative approach.")
    assert context[RISK_TOLERANCE] == "conservative"


@pytest.mark.parametrize(
    "message, expected",
    [
        ("I want to invest 50 EGLD", (50.0, "EGLD")),
        ("put 12.5 usd in", (12.5, "USD")),
        ("about 300 dollars", (300.0, "USD")),
        ("250$ to start", (250.0, "USD")),
        ("7egld", (7.0, "EGLD")),
        ("$50 to start", None),
        ("fifty EGLD", None),
    ],
)
def test_parse_investment_amount(message: str, expected) -> None:
    assert parse_investment_amount(message) == expected


@pytest.mark.parametrize(
    "message, opening",
    [
        ("I have 5 EGLD", "I see you're looking to invest 5 EGLD."),
        ("I have 9.99 usd", "I see you're looking to invest 9.99 USD."),
        ("I have 10 EGLD", "With 10 EGLD, you can start diversifying"),
        ("I have 99.5 dollars", "With 99.5 USD, you can start diversifying"),
        ("I have 100 EGLD", "With 100 EGLD, you can build a well-diversified portfolio."),
    ],
)
def test_investment_amount_bands(message: str, opening: str) -> None:
    context = ConversationContext()
    reply = investment_amount_rule(message, context)
    assert reply is not None
    assert reply.startswith(opening)
    assert INVESTMENT_AMOUNT in context and INVESTMENT_CURRENCY in context


def test_investment_amount_declines_on_huge_number() -> None:
    context = ConversationContext()
    assert investment_amount_rule("9" * 400 + " usd", context) is None
    assert len(context) == 0


@pytest.mark.parametrize(
    "message, horizon",
    [
        ("just a quick flip", "short"),
        ("short-term parking", "short"),
        ("a few weeks", "short"),
        ("for a few months", "medium"),
        ("about half year", "medium"),
        ("long term hold", "long"),
        ("over the next years", "long"),
        ("no idea", None),
    ],
)
def test_classify_time_horizon(message: str, horizon: Optional[str]) -> None:
    assert classify_time_horizon(message) == horizon


@pytest.mark.parametrize(
    "message, horizon, opening",
    [
        ("just a quick flip", "short", "For short-term investments, liquidity is key."),
        ("for a few months", "medium", "For a medium-term horizon of a few months,"),
        ("long term hold", "long", "With a long-term investment horizon,"),
    ],
)
def test_time_horizon_rule_replies_and_sets_context(message: str, horizon: str, opening: str) -> None:
    context = ConversationContext()
    reply = time_horizon_rule(message, context)
    assert reply is not None
    assert reply.startswith(opening)
    assert context[TIME_HORIZON] == horizon


def test_time_horizon_rule_declines_without_touching_context() -> None:
    context = ConversationContext()
    assert time_horizon_rule("no idea", context) is None
    assert TIME_HORIZON not in context


@pytest.mark.parametrize(
    "message, protocol, opening",
    [
        ("Tell me about Hatom", "hatom", "Hatom Protocol is a lending and borrowing platform"),
        ("OneDex vs JEXchange", "onedex", "OneDex is an aggregator DEX"),
        ("hatom or maiar?", "maiar", "Maiar Exchange is the leading DEX"),
        ("Is AshSwap safe", "ashswap", "AshSwap is a stable swap AMM"),
        ("what about xExchange farms", "xexchange", "xExchange is a decentralized exchange"),
        ("JEX rewards on jexchange", "jexchange", "JEXchange focuses on community governance"),
    ],
)
def test_protocol_rule_uses_declared_order(message: str, protocol: str, opening: str) -> None:
    context = ConversationContext()
    reply = specific_protocol_rule(message, context)
    assert reply is not None
    assert reply.startswith(opening)
    assert context[LAST_PROTOCOL] == protocol


@pytest.mark.parametrize(
    "tier, line",
    [
        ("conservative", "• 50% - Hatom USDC lending (8.7% APY)"),
        ("aggressive", "• 10% - Hatom EGLD lending (5.8% APY) as a safety buffer"),
        ("balanced", "• 20% - OneDex EGLD-ONE LP (14.8% APY)"),
    ],
)
def test_portfolio_rule_follows_risk_tier(tier: str, line: str) -> None:
    context = ConversationContext()
    context.set(RISK_TOLERANCE, tier)
    reply = portfolio_recommendation_rule("recommend a portfolio", context)
    assert reply is not None
    assert line in reply.split("\n")
    assert context.snapshot() == {RISK_TOLERANCE: tier}


def test_portfolio_rule_defaults_to_balanced() -> None:
    reply = portfolio_recommendation_rule("any allocation ideas?", ConversationContext())
    assert reply is not None
    assert reply.startswith("For a balanced approach")


@pytest.mark.parametrize("tier", sorted(PORTFOLIO_ALLOCATIONS))
def test_allocation_weights_sum_to_100(tier: str) -> None:
    frame = allocation_frame(tier)
    assert int(frame["weight_pct"].sum()) == 100
    assert list(frame.columns) == ["position", "weight_pct", "apy_pct", "weighted_apy"]


def test_declined_risk_rule_falls_through_to_next_rule() -> None:
    context = ConversationContext()
    match = PatternRuleSet().evaluate("what risk for 50 EGLD?", context)
    assert match is not None
    assert match.rule == "investment_amount"
    assert RISK_TOLERANCE not in context
    assert context[INVESTMENT_AMOUNT] == 50


def test_first_matching_rule_short_circuits() -> None:
    context = ConversationContext()
    match = PatternRuleSet().evaluate("aggressive portfolio over the long term", context)
    assert match is not None
    assert match.rule == "risk_tolerance"
    assert TIME_HORIZON not in context


def test_failing_rule_is_treated_as_decline() -> None:
    def broken(message: str, context: ConversationContext) -> Optional[str]:
        raise RuntimeError("boom")

    rules = PatternRuleSet([Rule("broken", broken), Rule("echo", lambda message, context: message)])
    match = rules.evaluate("ping", ConversationContext())
    assert match is not None
    assert match.rule == "echo"
    assert match.reply == "ping"


def test_no_rule_matches() -> None:
    assert PatternRuleSet().evaluate("Tell me a joke", ConversationContext()) is None
