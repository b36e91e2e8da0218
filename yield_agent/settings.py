"""Runtime settings for the assistant and its host pages."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_GREETING = (
    "Hello! I'm your AgentX yield optimization assistant. I can help you maximize returns while managing "
    "risk. What would you like to know about yield opportunities?"
)
DEFAULT_TYPING_DELAY: Tuple[float, float] = (0.5, 1.5)
LOG_FORMAT = "%(asctime)s :: %(levelname)s :: %(name)s :: %(message)s"

_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class AssistantSettings:
    greeting: str = DEFAULT_GREETING
    seed: Optional[int] = None
    catalog_path: Optional[Path] = None
    log_level: str = "INFO"
    typing_delay: Tuple[float, float] = DEFAULT_TYPING_DELAY


def _parse_seed(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring non-integer YIELD_AGENT_SEED=%r", raw)
        return None


def _parse_level(raw: Optional[str]) -> str:
    if raw is None or not raw.strip():
        return "INFO"
    level = raw.strip().upper()
    if level not in _LEVELS:
        logger.warning("Unknown LOG_LEVEL=%r, using INFO", raw)
        return "INFO"
    return level


def _parse_delay(raw: Optional[str]) -> Tuple[float, float]:
    if raw is None or not raw.strip():
        return DEFAULT_TYPING_DELAY
    try:
        parts = [float(part) for part in raw.split(",")]
    except ValueError:
        parts = []
    if len(parts) == 1:
        parts = parts * 2
    if len(parts) != 2 or min(parts) < 0:
        logger.warning("Ignoring malformed YIELD_AGENT_TYPING_DELAY=%r", raw)
        return DEFAULT_TYPING_DELAY
    low, high = sorted(parts)
    return low, high


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AssistantSettings:
    env = os.environ if environ is None else environ
    catalog = env.get("YIELD_AGENT_CATALOG", "").strip()
    return AssistantSettings(
        greeting=env.get("YIELD_AGENT_GREETING", "").strip() or DEFAULT_GREETING,
        seed=_parse_seed(env.get("YIELD_AGENT_SEED")),
        catalog_path=Path(catalog).expanduser() if catalog else None,
        log_level=_parse_level(env.get("LOG_LEVEL")),
        typing_delay=_parse_delay(env.get("YIELD_AGENT_TYPING_DELAY")),
    )


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the root logger once per process."""

    root = logging.getLogger()
    root.setLevel(getattr(logging, _parse_level(level)))
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


__all__ = ["AssistantSettings", "DEFAULT_GREETING", "configure_logging", "load_settings"]
