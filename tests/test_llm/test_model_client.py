"""Tests for the two-tier model client."""

import json
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from inbox_digest.exceptions import ModelError
from inbox_digest.llm.client import DEFAULT_MINI_MODEL, ModelClient
from inbox_digest.models import RawModelResult, Tier, Urgency


def _reply(payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    response = MagicMock()
    response.content = [MagicMock(type="text", text=text)]
    return response


GOOD = {
    "summary_bullets": ["Invoice 42 is overdue"],
    "action_items": ["Pay invoice 42"],
    "urgency": "high",
    "needs_mid_tier": False,
    "why": "",
}


@pytest.fixture
def sdk():
    return MagicMock()


@pytest.fixture
def client(sdk):
    return ModelClient(mini_model="mini-model", mid_model="mid-model", client=sdk)


def test_init_requires_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(ModelError, match="API key is required"):
        ModelClient(api_key=None)


def test_init_with_env_key(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key-123")
    client = ModelClient(api_key=None)
    assert client.models[Tier.MINI] == DEFAULT_MINI_MODEL
    assert client.client is client._client


def test_complete_parses_result(client, sdk):
    sdk.messages.create.return_value = _reply(GOOD)

    result = client.complete(Tier.MINI, "Overdue", "Please pay")

    assert result == RawModelResult(
        summary_bullets=["Invoice 42 is overdue"],
        action_items=["Pay invoice 42"],
        urgency=Urgency.HIGH,
        needs_mid_tier=False,
        why="",
    )


def test_tier_selects_model(client, sdk):
    sdk.messages.create.return_value = _reply(GOOD)

    client.complete(Tier.MINI, "s", "b")
    assert sdk.messages.create.call_args.kwargs["model"] == "mini-model"

    client.complete("mid", "s", "b")
    assert sdk.messages.create.call_args.kwargs["model"] == "mid-model"


def test_body_is_truncated_to_budget(client, sdk):
    sdk.messages.create.return_value = _reply(GOOD)
    body = "a" * 1999 + "bc" + "z" * 500

    client.complete(Tier.MINI, "subject", body)

    prompt = sdk.messages.create.call_args.kwargs["messages"][0]["content"]
    assert "a" * 1999 + "b" in prompt
    assert "c" not in prompt.split("Body: ", 1)[1]


def test_transport_error_returns_fallback(client, sdk):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    sdk.messages.create.side_effect = anthropic.APIConnectionError(request=request)

    assert client.complete(Tier.MINI, "s", "b") == RawModelResult.fallback()


def test_malformed_json_returns_fallback(client, sdk):
    sdk.messages.create.return_value = _reply("Sure! Here is a summary.")
    assert client.complete(Tier.MID, "s", "b") == RawModelResult.fallback()


def test_non_boolean_escalation_flag_returns_fallback(client, sdk):
    sdk.messages.create.return_value = _reply({**GOOD, "needs_mid_tier": "yes"})
    assert client.complete(Tier.MINI, "s", "b") == RawModelResult.fallback()


def test_fallback_shape():
    fallback = RawModelResult.fallback()
    assert fallback.summary_bullets == ["Unable to summarize - API error"]
    assert fallback.action_items == []
    assert fallback.urgency is Urgency.LOW
    assert fallback.needs_mid_tier is False
    assert fallback.why == ""
