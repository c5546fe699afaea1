"""Two-tier Claude client for email summaries."""

from __future__ import annotations

import logging
import os

from inbox_digest.exceptions import ModelError, ModelInvocationError
from inbox_digest.llm.prompts import SYSTEM_PROMPT, build_prompt, parse_result
from inbox_digest.models import RawModelResult, Tier

logger = logging.getLogger(__name__)


DEFAULT_MINI_MODEL = os.environ.get("INBOX_DIGEST_MINI_MODEL", "claude-haiku-4-5-20251001")
DEFAULT_MID_MODEL = os.environ.get("INBOX_DIGEST_MID_MODEL", "claude-sonnet-4-5-20250929")

BODY_CHAR_LIMIT = 2000


class ModelClient:
    """Synchronous wrapper around the Anthropic SDK with a fixed prompt contract.

    ``complete`` never raises for transport or parse failures; it returns
    ``RawModelResult.fallback()`` instead. Retries are left to the caller, so
    the SDK's own retry loop is off unless ``max_retries`` says otherwise.

    Args:
        api_key: Anthropic API key, falls back to ``ANTHROPIC_API_KEY``.
        mini_model: Model used for the cheap tier.
        mid_model: Model used for the capable tier.
        body_char_limit: Bodies are truncated to this many characters.
        client: Pre-built ``anthropic.Anthropic`` (or compatible) client.
    """

    def __init__(
        self,
        api_key: str | None = None,
        mini_model: str = DEFAULT_MINI_MODEL,
        mid_model: str = DEFAULT_MID_MODEL,
        body_char_limit: int = BODY_CHAR_LIMIT,
        max_tokens: int = 500,
        temperature: float = 0.3,
        max_retries: int = 0,
        client=None,
    ):
        if client is None:
            if not api_key and not os.environ.get("ANTHROPIC_API_KEY"):
                raise ModelError(
                    "Anthropic API key is required. "
                    "Pass it directly or set ANTHROPIC_API_KEY in your environment."
                )
            from anthropic import Anthropic

            client = Anthropic(api_key=api_key or None, max_retries=max_retries)
        self._client = client
        self.models = {Tier.MINI: mini_model, Tier.MID: mid_model}
        self.body_char_limit = body_char_limit
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def client(self):
        """Access the underlying Anthropic SDK client for advanced usage."""
        return self._client

    def complete(self, tier: Tier | str, subject: str, body: str) -> RawModelResult:
        """Summarize one email on the given tier."""
        from anthropic import APIError

        model = self.models[Tier(tier)]
        prompt = build_prompt(subject, body[: self.body_char_limit])
        try:
            response = self._client.messages.create(
                model=model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
            return parse_result(_response_text(response))
        except APIError as e:
            logger.warning(f"Model {model} call failed: {e}")
        except ModelInvocationError as e:
            logger.warning(f"Model {model} returned an unusable response: {e}")
        return RawModelResult.fallback()


def _response_text(response) -> str:
    try:
        return "".join(
            block.text for block in response.content if block.type == "text"
        )
    except (AttributeError, TypeError) as e:
        raise ModelInvocationError(f"Unexpected response shape: {e}") from e
