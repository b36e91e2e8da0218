"""Conversation rules that tailor replies to what the user has told us."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from yield_agent.conversation import (
    INVESTMENT_AMOUNT,
    INVESTMENT_CURRENCY,
    LAST_PROTOCOL,
    RISK_TOLERANCE,
    TIME_HORIZON,
    ConversationContext,
)

logger = logging.getLogger(__name__)

RuleFunction = Callable[[str, ConversationContext], Optional[str]]


@dataclass(frozen=True)
class Rule:
    name: str
    evaluate: RuleFunction


@dataclass(frozen=True)
class RuleMatch:
    rule: str
    reply: str


@dataclass(frozen=True)
class Allocation:
    weight: int
    label: str
    apy: float
    note: str = ""


# Risk tolerance ---------------------------------------------------------

_RISK_TERMS = ("risk", "conservative", "aggressive", "moderate", "safe", "risky")
_RISK_TIERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("conservative", ("conservative", "safe", "low risk")),
    ("aggressive", ("aggressive", "risky", "high risk")),
    ("balanced", ("moderate", "balanced", "medium risk")),
)
_RISK_REPLIES: Dict[str, str] = {
    "conservative": (
        "I understand you prefer a conservative approach. I'll focus on lower-risk opportunities like "
        "Hatom's lending pools and stablecoin strategies, which typically offer 5-9% APY with minimal "
        "volatility. Would you like specific recommendations for conservative strategies?"
    ),
    "aggressive": (
        "I see you're comfortable with an aggressive strategy. I can recommend higher-yield opportunities "
        "like JEXchange's JEX-USDC farm (28.5% APY) and xExchange's EGLD-XEX farm (22.4% APY). These carry "
        "higher risk but potentially greater rewards. Would you like more details on these opportunities?"
    ),
    "balanced": (
        "A balanced approach is a great choice. I recommend a mix of lending protocols like Hatom (8.7% APY "
        "for USDC) and established liquidity pools like EGLD-MEX on Maiar Exchange (18.5% APY). This gives "
        "you a good balance of stability and growth. Would you like me to create a sample portfolio with "
        "this approach?"
    ),
}


def classify_risk_tolerance(message: str) -> Optional[str]:
    lowered = message.lower()
    if not any(term in lowered for term in _RISK_TERMS):
        return None
    for tier, terms in _RISK_TIERS:
        if any(term in lowered for term in terms):
            return tier
    # "risk" on its own says nothing about the preferred tier.
    return None


def risk_tolerance_rule(message: str, context: ConversationContext) -> Optional[str]:
    tier = classify_risk_tolerance(message)
    if tier is None:
        return None
    context.set(RISK_TOLERANCE, tier)
    return _RISK_REPLIES[tier]


# Investment amount ------------------------------------------------------

AMOUNT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(egld|dollars|usd|\$)", re.IGNORECASE)


def _format_amount(amount: float) -> str:
    if amount.is_integer():
        return str(int(amount))
    return repr(amount)


def parse_investment_amount(message: str) -> Optional[Tuple[float, str]]:
    match = AMOUNT_PATTERN.search(message)
    if not match:
        return None
    try:
        amount = float(match.group(1))
    except ValueError:
        return None
    if not math.isfinite(amount):
        return None
    currency = "EGLD" if match.group(2).lower() == "egld" else "USD"
    return amount, currency


def investment_amount_rule(message: str, context: ConversationContext) -> Optional[str]:
    parsed = parse_investment_amount(message)
    if parsed is None:
        return None
    amount, currency = parsed
    context.set(INVESTMENT_AMOUNT, amount)
    context.set(INVESTMENT_CURRENCY, currency)
    stake = f"{_format_amount(amount)} {currency}"
    if amount < 10:
        return (
            f"I see you're looking to invest {stake}. For smaller amounts, I recommend focusing on a single "
            "protocol to minimize transaction costs. Hatom's EGLD lending at 5.8% APY would be a good "
            "starting point. Would you like more options?"
        )
    if amount < 100:
        return (
            f"With {stake}, you can start diversifying across 2-3 protocols. I'd suggest allocating 50% to "
            "Hatom lending and 50% to a stable liquidity pool like EGLD-USDC on Maiar Exchange. Would this "
            "approach work for you?"
        )
    return (
        f"With {stake}, you can build a well-diversified portfolio. I recommend 40% in lending protocols, "
        "40% in established liquidity pools, and 20% in higher-yield opportunities. Would you like me to "
        "create a detailed allocation plan?"
    )


# Time horizon -----------------------------------------------------------

_HORIZON_TERMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("short", ("short term", "short-term", "quick", "few days", "few weeks", "short period")),
    ("medium", ("medium term", "medium-term", "few months", "half year", "months")),
    ("long", ("long term", "long-term", "year", "years", "long period")),
)
_HORIZON_REPLIES: Dict[str, str] = {
    "short": (
        "For short-term investments, liquidity is key. I recommend stablecoin pools on AshSwap (9.2% APY) "
        "or USDC lending on Hatom (8.7% APY). These allow you to exit positions quickly with minimal price "
        "risk. Would you like more short-term options?"
    ),
    "medium": (
        "For a medium-term horizon of a few months, balanced liquidity pools like EGLD-MEX on Maiar Exchange "
        "(18.5% APY) offer a good compromise between yield and stability. Would you like me to suggest a "
        "medium-term portfolio allocation?"
    ),
    "long": (
        "With a long-term investment horizon, you can benefit from compounding and ride out short-term "
        "volatility. I recommend a diversified approach with 30% in lending, 40% in liquidity pools, and 30% "
        "in higher-yield farming opportunities. This could yield 15-20% APY on average over time. Would you "
        "like a detailed long-term strategy?"
    ),
}


def classify_time_horizon(message: str) -> Optional[str]:
    lowered = message.lower()
    for horizon, terms in _HORIZON_TERMS:
        if any(term in lowered for term in terms):
            return horizon
    return None


def time_horizon_rule(message: str, context: ConversationContext) -> Optional[str]:
    horizon = classify_time_horizon(message)
    if horizon is None:
        return None
    context.set(TIME_HORIZON, horizon)
    return _HORIZON_REPLIES[horizon]


# Specific protocol ------------------------------------------------------

PROTOCOL_DESCRIPTIONS: Tuple[Tuple[str, str], ...] = (
    ("maiar", (
        "Maiar Exchange is the leading DEX on MultiversX with $124.5M TVL. Their EGLD-MEX liquidity pool "
        "offers 18.5% APY with medium risk. They also offer farms with additional MEX rewards. Would you "
        "like specific pool recommendations from Maiar?"
    )),
    ("hatom", (
        "Hatom Protocol is a lending and borrowing platform with $78.3M TVL. They offer 5.8% APY for EGLD "
        "lending and 8.7% for USDC, both with relatively low risk. Their auto-compounding feature maximizes "
        "your returns. Would you like to know more about Hatom's lending options?"
    )),
    ("ashswap", (
        "AshSwap is a stable swap AMM focused on minimal slippage with $45.6M TVL. Their stablecoin pool "
        "offers 9.2% APY with low risk, making it ideal for conservative investors. Would you like more "
        "details about AshSwap's pools?"
    )),
    ("xexchange", (
        "xExchange is a decentralized exchange with $92.1M TVL offering farming opportunities and "
        "governance. Their EGLD-XEX farm offers 22.4% APY but with higher risk. Would you like to explore "
        "xExchange's yield options?"
    )),
    ("onedex", (
        "OneDex is an aggregator DEX providing optimal rates across MultiversX with $31.5M TVL. Their "
        "EGLD-ONE LP offers 14.8% APY with medium risk. Would you like more information about OneDex?"
    )),
    ("jexchange", (
        "JEXchange focuses on community governance and yield farming with $28.7M TVL. Their JEX-USDC farm "
        "offers the highest APY in the ecosystem at 28.5%, but with higher risk. Would you like to know more "
        "about JEXchange's high-yield opportunities?"
    )),
)


def specific_protocol_rule(message: str, context: ConversationContext) -> Optional[str]:
    lowered = message.lower()
    for protocol, description in PROTOCOL_DESCRIPTIONS:
        if protocol in lowered:
            context.set(LAST_PROTOCOL, protocol)
            return description
    return None


# Portfolio recommendation -----------------------------------------------

_PORTFOLIO_TERMS = ("portfolio", "recommend", "suggest", "allocation")

PORTFOLIO_ALLOCATIONS: Dict[str, Tuple[Allocation, ...]] = {
    "conservative": (
        Allocation(50, "Hatom USDC lending", 8.7),
        Allocation(30, "AshSwap stablecoin pool", 9.2),
        Allocation(20, "Maiar EGLD-USDC LP", 12.3),
    ),
    "aggressive": (
        Allocation(40, "xExchange EGLD-XEX farm", 22.4),
        Allocation(30, "JEXchange JEX-USDC farm", 28.5),
        Allocation(20, "Maiar EGLD-MEX LP", 18.5),
        Allocation(10, "Hatom EGLD lending", 5.8, note="as a safety buffer"),
    ),
    "balanced": (
        Allocation(30, "Hatom USDC lending", 8.7),
        Allocation(30, "Maiar EGLD-MEX LP", 18.5),
        Allocation(20, "OneDex EGLD-ONE LP", 14.8),
        Allocation(20, "xExchange EGLD-XEX farm", 22.4),
    ),
}

# (heading, closing) per tier; the quoted averages are the rounded figures
# shown on the dashboard.
_PORTFOLIO_COPY: Dict[str, Tuple[str, str]] = {
    "conservative": (
        "Based on your conservative risk profile, I recommend this portfolio allocation:",
        "This gives you a weighted average APY of about 9.5% with minimal risk. Would you like me to explain "
        "any of these options in more detail?",
    ),
    "aggressive": (
        "For your aggressive risk profile, I recommend this high-yield portfolio:",
        "This gives you a weighted average APY of about 21.7%. Would you like me to adjust this allocation?",
    ),
    "balanced": (
        "For a balanced approach, I recommend this diversified portfolio:",
        "This gives you a weighted average APY of about 15.6% with moderate risk. Would you like me to "
        "explain the rationale behind this allocation?",
    ),
}


def resolve_portfolio_tier(context: ConversationContext) -> str:
    tier = str(context.get(RISK_TOLERANCE) or "balanced")
    return tier if tier in PORTFOLIO_ALLOCATIONS else "balanced"


def _format_allocation(allocation: Allocation) -> str:
    line = f"• {allocation.weight}% - {allocation.label} ({allocation.apy}% APY)"
    if allocation.note:
        line += f" {allocation.note}"
    return line


def allocation_frame(tier: str) -> pd.DataFrame:
    """Tabulate a tier's allocation with each line's share of the blended APY."""

    rows = [
        {
            "position": allocation.label,
            "weight_pct": allocation.weight,
            "apy_pct": allocation.apy,
            "weighted_apy": round(allocation.weight * allocation.apy / 100, 2),
        }
        for allocation in PORTFOLIO_ALLOCATIONS[tier]
    ]
    return pd.DataFrame(rows, columns=["position", "weight_pct", "apy_pct", "weighted_apy"])


def portfolio_recommendation_rule(message: str, context: ConversationContext) -> Optional[str]:
    lowered = message.lower()
    if not any(term in lowered for term in _PORTFOLIO_TERMS):
        return None
    tier = resolve_portfolio_tier(context)
    heading, closing = _PORTFOLIO_COPY[tier]
    lines = "\n".join(_format_allocation(allocation) for allocation in PORTFOLIO_ALLOCATIONS[tier])
    return f"{heading}\n\n{lines}\n\n{closing}"


# Rule set ---------------------------------------------------------------


def default_rules() -> List[Rule]:
    return [
        Rule("risk_tolerance", risk_tolerance_rule),
        Rule("investment_amount", investment_amount_rule),
        Rule("time_horizon", time_horizon_rule),
        Rule("specific_protocol", specific_protocol_rule),
        Rule("portfolio_recommendation", portfolio_recommendation_rule),
    ]


class PatternRuleSet:
    """Evaluates rules in declared order; the first non-empty reply wins."""

    def __init__(self, rules: Optional[Iterable[Rule]] = None) -> None:
        self.rules: Tuple[Rule, ...] = tuple(rules) if rules is not None else tuple(default_rules())

    def evaluate(self, message: str, context: ConversationContext) -> Optional[RuleMatch]:
        for rule in self.rules:
            try:
                reply = rule.evaluate(message, context)
            except Exception:
                logger.warning("Rule %s failed on %r; treating it as a decline", rule.name, message, exc_info=True)
                continue
            if reply:
                return RuleMatch(rule=rule.name, reply=reply)
        return None

    def names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def __len__(self) -> int:
        return len(self.rules)


__all__ = [
    "AMOUNT_PATTERN",
    "Allocation",
    "PORTFOLIO_ALLOCATIONS",
    "PROTOCOL_DESCRIPTIONS",
    "PatternRuleSet",
    "Rule",
    "RuleMatch",
    "allocation_frame",
    "classify_risk_tolerance",
    "classify_time_horizon",
    "default_rules",
    "parse_investment_amount",
    "resolve_portfolio_tier",
]
