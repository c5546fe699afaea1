"""Prompt contract for email summaries and validation of model output."""

from __future__ import annotations

import json
import re

from inbox_digest.exceptions import ModelInvocationError
from inbox_digest.models import RawModelResult, Urgency

MAX_SUMMARY_BULLETS = 2
MAX_ACTION_ITEMS = 3

SYSTEM_PROMPT = (
    "You are an email analysis assistant. "
    "Always respond with valid JSON only, no markdown or explanations."
)

_USER_TEMPLATE = """Analyze this email and return a JSON object with the following structure:
{{
  "summary_bullets": ["brief point 1", "brief point 2"],
  "action_items": ["action 1", "action 2"],
  "urgency": "low" | "med" | "high",
  "needs_mid_tier": true | false,
  "why": "brief reason if needs_mid_tier is true"
}}

Rules:
- summary_bullets: 1-2 concise points (max 15 words each)
- action_items: 0-3 actionable items (max 12 words each), empty array if none
- urgency: "low" for newsletters/info, "med" for normal emails, "high" for time-sensitive
- needs_mid_tier: true if email is complex (multiple questions, technical, nuanced), false otherwise
- why: only needed if needs_mid_tier is true

Email:
Subject: {subject}

Body: {body}"""

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def build_prompt(subject: str, body: str) -> str:
    """User message for one email. ``body`` should already be truncated."""
    return _USER_TEMPLATE.format(subject=subject, body=body)


def parse_result(text: str) -> RawModelResult:
    """Validate a model reply against the prompt contract.

    Raises:
        ModelInvocationError: The reply is not JSON or breaks the contract.
    """
    text = text.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ModelInvocationError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ModelInvocationError("Response is not a JSON object")

    bullets = _string_list(data.get("summary_bullets"), "summary_bullets")
    if not bullets:
        raise ModelInvocationError("summary_bullets must not be empty")
    actions = _string_list(data.get("action_items", []), "action_items")

    try:
        urgency = Urgency(data.get("urgency"))
    except ValueError as e:
        raise ModelInvocationError(f"Invalid urgency: {data.get('urgency')!r}") from e

    needs_mid_tier = data.get("needs_mid_tier")
    if not isinstance(needs_mid_tier, bool):
        raise ModelInvocationError(f"needs_mid_tier must be a boolean, got {needs_mid_tier!r}")

    why = data.get("why") or ""
    if not isinstance(why, str):
        raise ModelInvocationError("why must be a string")

    return RawModelResult(
        summary_bullets=bullets[:MAX_SUMMARY_BULLETS],
        action_items=actions[:MAX_ACTION_ITEMS],
        urgency=urgency,
        needs_mid_tier=needs_mid_tier,
        why=why if needs_mid_tier else "",
    )


def _string_list(value, name: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ModelInvocationError(f"{name} must be a list of strings")
    return [v.strip() for v in value if v.strip()]
