"""Conversation state: turns, history and inferred user context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

ContextValue = Union[str, float]

RISK_TOLERANCE = "risk_tolerance"
INVESTMENT_AMOUNT = "investment_amount"
INVESTMENT_CURRENCY = "investment_currency"
TIME_HORIZON = "time_horizon"
LAST_PROTOCOL = "last_protocol_discussed"


class Speaker(str, Enum):
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True)
class Turn:
    speaker: Speaker
    text: str


class ConversationContext:
    """Attributes inferred about the user during one session.

    Keys appear the first time a rule infers them and stay until ``clear``.
    """

    def __init__(self) -> None:
        self._values: Dict[str, ContextValue] = {}

    def get(self, key: str, default: Optional[ContextValue] = None) -> Optional[ContextValue]:
        return self._values.get(key, default)

    def set(self, key: str, value: ContextValue) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()

    def snapshot(self) -> Dict[str, ContextValue]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __getitem__(self, key: str) -> ContextValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConversationContext({self._values!r})"


class ConversationHistory:
    def __init__(self, greeting: str) -> None:
        self.greeting = greeting
        self._turns: List[Turn] = [Turn(Speaker.AGENT, greeting)]

    # ------------------------------------------------------------------
    def record_user(self, text: str) -> Turn:
        turn = Turn(Speaker.USER, text)
        self._turns.append(turn)
        return turn

    def record_agent(self, text: str) -> Turn:
        turn = Turn(Speaker.AGENT, text)
        self._turns.append(turn)
        return turn

    def turns(self) -> List[Turn]:
        return list(self._turns)

    def reset(self) -> None:
        self._turns = [Turn(Speaker.AGENT, self.greeting)]

    def last(self) -> Turn:
        return self._turns[-1]

    def __len__(self) -> int:
        return len(self._turns)

    def transcript(self, limit: Optional[int] = None) -> str:
        turns = self._turns if limit is None else self._turns[-limit:]
        lines: List[str] = []
        for turn in turns:
            label = "You" if turn.speaker is Speaker.USER else "AgentX"
            lines.append(f"{label}: {turn.text}")
        return "\n".join(lines)


__all__ = [
    "ConversationContext",
    "ConversationHistory",
    "Speaker",
    "Turn",
    "RISK_TOLERANCE",
    "INVESTMENT_AMOUNT",
    "INVESTMENT_CURRENCY",
    "TIME_HORIZON",
    "LAST_PROTOCOL",
]
