"""Rule-based yield assistant for the AgentX dashboard chat."""

from yield_agent.catalog import ResponseCatalog, TopicEntry
from yield_agent.conversation import ConversationContext, Speaker, Turn
from yield_agent.engine import ChartPayload, DialogueEngine, ResponsePayload, TablePayload
from yield_agent.errors import CatalogError
from yield_agent.rules import PatternRuleSet, Rule, RuleMatch
from yield_agent.settings import AssistantSettings, configure_logging, load_settings

__all__ = [
    "AssistantSettings",
    "CatalogError",
    "ChartPayload",
    "ConversationContext",
    "DialogueEngine",
    "PatternRuleSet",
    "ResponseCatalog",
    "ResponsePayload",
    "Rule",
    "RuleMatch",
    "Speaker",
    "TablePayload",
    "TopicEntry",
    "Turn",
    "configure_logging",
    "load_settings",
]
