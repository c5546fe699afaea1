"""Two-tier summarization (Anthropic Claude)."""

from inbox_digest.llm.client import DEFAULT_MID_MODEL, DEFAULT_MINI_MODEL, ModelClient
from inbox_digest.llm.router import SummarizationRouter, rules_escalation_trigger

__all__ = [
    "DEFAULT_MID_MODEL",
    "DEFAULT_MINI_MODEL",
    "ModelClient",
    "SummarizationRouter",
    "rules_escalation_trigger",
]
