"""Decides per email whether the mini tier is enough or the mid tier is needed.

Order matters and is fixed:

1. Cheap local rules. If any fires, the mid tier is called directly and
   the mini tier is never paid for.
2. Otherwise the mini tier runs. If it reports ``needs_mid_tier`` the mid
   tier is called and the mini tier's reason is kept.
3. Otherwise the mini result is returned as is.
"""

from __future__ import annotations

import logging
import re

from inbox_digest.llm.client import ModelClient
from inbox_digest.models import EscalationReason, RoutingResult, Tier

logger = logging.getLogger(__name__)

LONG_BODY_CHARS = 1500
MIN_QUESTION_MARKS = 3
MIN_LIST_LINES = 5

COMPLEX_KEYWORDS = (
    "contract",
    "legal",
    "agreement",
    "terms and conditions",
    "technical issue",
    "bug report",
    "error log",
    "stack trace",
    "financial statement",
    "invoice",
    "payment terms",
    "multi-step",
    "detailed instructions",
    "comprehensive",
)

_BULLET_LINE = re.compile(r"^\s*[-*•]\s", re.MULTILINE)
_NUMBERED_LINE = re.compile(r"^\s*\d+\.\s", re.MULTILINE)


def rules_escalation_trigger(subject: str, body: str) -> str | None:
    """Name of the first complexity rule the email trips, or None."""
    if len(body) > LONG_BODY_CHARS:
        return "length"

    combined = f"{subject} {body}".lower()
    if combined.count("?") >= MIN_QUESTION_MARKS:
        return "questions"

    if any(kw in combined for kw in COMPLEX_KEYWORDS):
        return "keyword"

    if (
        len(_BULLET_LINE.findall(body)) >= MIN_LIST_LINES
        or len(_NUMBERED_LINE.findall(body)) >= MIN_LIST_LINES
    ):
        return "lists"

    return None


class SummarizationRouter:
    """Routes each email to the cheapest tier that can handle it."""

    def __init__(self, model_client: ModelClient):
        self._model = model_client

    def route(self, subject: str, body: str) -> RoutingResult:
        label = subject[:50]

        trigger = rules_escalation_trigger(subject, body)
        if trigger is not None:
            logger.info(f'[Router] Rules ({trigger}) escalate to mid tier: "{label}"')
            mid = self._model.complete(Tier.MID, subject, body)
            return RoutingResult.from_raw(
                mid, used_mid_tier=True, escalation_reason=EscalationReason.RULES_BASED,
            )

        logger.info(f'[Router] Using mini tier: "{label}"')
        mini = self._model.complete(Tier.MINI, subject, body)
        if mini.needs_mid_tier:
            logger.info(f"[Router] Mini tier requested escalation: {mini.why}")
            mid = self._model.complete(Tier.MID, subject, body)
            return RoutingResult.from_raw(
                mid,
                used_mid_tier=True,
                escalation_reason=EscalationReason.MODEL_REQUESTED,
                model_reason=mini.why,
            )

        return RoutingResult.from_raw(mini, used_mid_tier=False, escalation_reason=None)
