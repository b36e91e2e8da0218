"""Dialogue engine driving the yield assistant chat."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, TypeVar, cast

import pandas as pd
import plotly.express as px
import plotly.io as pio

from yield_agent.catalog import ResponseCatalog
from yield_agent.conversation import (
    ContextValue,
    ConversationContext,
    ConversationHistory,
    Turn,
)
from yield_agent.rules import PatternRuleSet, RuleMatch, allocation_frame, resolve_portfolio_tier
from yield_agent.settings import DEFAULT_GREETING, AssistantSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

PORTFOLIO_RULE = "portfolio_recommendation"


class ChoiceSource(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


@dataclass
class TablePayload:
    title: str
    dataframe: pd.DataFrame


@dataclass
class ChartPayload:
    title: str
    figure_json: str


@dataclass
class ResponsePayload:
    message: str
    tables: List[TablePayload] = field(default_factory=list)
    charts: List[ChartPayload] = field(default_factory=list)
    fallback: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)


class DialogueEngine:
    """One conversation session: history, inferred context and reply selection.

    Each turn tries the conversation rules first, then the keyword catalog,
    then a generic fallback. Calls must be serialized by the caller; the
    engine holds no locks.
    """

    def __init__(
        self,
        catalog: Optional[ResponseCatalog] = None,
        rules: Optional[PatternRuleSet] = None,
        rng: Optional[ChoiceSource] = None,
        seed: Optional[int] = None,
        greeting: str = DEFAULT_GREETING,
    ) -> None:
        self.catalog = catalog if catalog is not None else ResponseCatalog.default()
        self.rules = rules if rules is not None else PatternRuleSet()
        self._rng: ChoiceSource = rng if rng is not None else random.Random(seed)
        self._context = ConversationContext()
        self._history = ConversationHistory(greeting)

    @classmethod
    def from_settings(cls, settings: AssistantSettings) -> "DialogueEngine":
        catalog = ResponseCatalog.from_yaml(settings.catalog_path) if settings.catalog_path else None
        return cls(catalog=catalog, seed=settings.seed, greeting=settings.greeting)

    # ------------------------------------------------------------------
    @property
    def greeting(self) -> str:
        return self._history.greeting

    @property
    def context(self) -> Dict[str, ContextValue]:
        return self._context.snapshot()

    def send_message(self, text: str) -> str:
        return self.respond(text).message

    def respond(self, text: str) -> ResponsePayload:
        self._history.record_user(text)
        payload = self._generate(text)
        self._history.record_agent(payload.message)
        payload.metadata.setdefault("context", self._context.snapshot())
        logger.debug(
            "Turn %d answered by %s (%s)",
            len(self._history) // 2,
            payload.metadata.get("tier"),
            payload.metadata.get("rule") or payload.metadata.get("keyword") or "-",
        )
        return payload

    def get_history(self) -> List[Turn]:
        return self._history.turns()

    def transcript(self, limit: Optional[int] = None) -> str:
        return self._history.transcript(limit)

    def reset(self) -> None:
        self._context.clear()
        self._history.reset()
        logger.info("Conversation reset")

    # Reply tiers -------------------------------------------------------
    def _generate(self, text: str) -> ResponsePayload:
        match = self.rules.evaluate(text, self._context)
        if match is not None:
            return self._rule_response(match)

        entry = self.catalog.match(text)
        if entry is not None:
            reply = self._rng.choice(entry.responses)
            return ResponsePayload(message=reply, metadata={"tier": "catalog", "keyword": entry.keyword})

        reply = self._rng.choice(self.catalog.fallbacks)
        return ResponsePayload(message=reply, fallback=True, metadata={"tier": "fallback"})

    def _rule_response(self, match: RuleMatch) -> ResponsePayload:
        payload = ResponsePayload(message=match.reply, metadata={"tier": "rule", "rule": match.rule})
        if match.rule == PORTFOLIO_RULE:
            tier = resolve_portfolio_tier(self._context)
            payload.metadata["risk_tier"] = tier
            try:
                self._attach_allocation(payload, tier)
            except Exception:
                logger.warning("Could not build allocation extras for %s", tier, exc_info=True)
        return payload

    def _attach_allocation(self, payload: ResponsePayload, tier: str) -> None:
        frame = allocation_frame(tier)
        title = f"{tier.capitalize()} allocation"
        payload.tables.append(TablePayload(title=title, dataframe=frame))

        fig = px.pie(frame, names="position", values="weight_pct", hole=0.45)
        fig.update_traces(textinfo="percent+label", hovertemplate="%{label}: %{value}%<extra></extra>")
        fig.update_layout(
            showlegend=False,
            margin=dict(l=20, r=20, t=60, b=20),
            title_text=f"{title} (blended APY {frame['weighted_apy'].sum():.1f}%)",
        )
        payload.charts.append(ChartPayload(title=title, figure_json=cast(str, pio.to_json(fig, validate=False))))


__all__ = ["ChartPayload", "DialogueEngine", "ResponsePayload", "TablePayload"]
