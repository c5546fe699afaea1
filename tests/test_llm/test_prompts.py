"""Tests for prompt construction and reply validation."""

import json

import pytest

from inbox_digest.exceptions import ModelInvocationError
from inbox_digest.llm.prompts import build_prompt, parse_result
from inbox_digest.models import Urgency


def _reply(**overrides):
    payload = {
        "summary_bullets": ["Team offsite moved to May"],
        "action_items": [],
        "urgency": "med",
        "needs_mid_tier": False,
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_build_prompt_includes_subject_and_body():
    prompt = build_prompt("Offsite", "Moved to May")
    assert "Subject: Offsite" in prompt
    assert "Body: Moved to May" in prompt
    assert '"needs_mid_tier"' in prompt


def test_parse_minimal_reply():
    result = parse_result(_reply())
    assert result.summary_bullets == ["Team offsite moved to May"]
    assert result.action_items == []
    assert result.urgency is Urgency.MED
    assert result.needs_mid_tier is False
    assert result.why == ""


def test_parse_tolerates_code_fence():
    result = parse_result(f"```json\n{_reply()}\n```")
    assert result.urgency is Urgency.MED


def test_parse_keeps_why_only_when_escalating():
    assert parse_result(_reply(needs_mid_tier=True, why="legal nuance")).why == "legal nuance"
    assert parse_result(_reply(why="ignored")).why == ""


def test_parse_trims_to_contract_bounds():
    result = parse_result(_reply(
        summary_bullets=["a", "b", "c"],
        action_items=["1", "2", "3", "4"],
    ))
    assert result.summary_bullets == ["a", "b"]
    assert result.action_items == ["1", "2", "3"]


def test_missing_action_items_defaults_to_empty():
    payload = json.loads(_reply())
    del payload["action_items"]
    assert parse_result(json.dumps(payload)).action_items == []


@pytest.mark.parametrize("reply", [
    "not json",
    "[1, 2]",
    _reply(summary_bullets=[]),
    _reply(summary_bullets="one bullet"),
    _reply(urgency="critical"),
    _reply(needs_mid_tier=None),
    _reply(needs_mid_tier=1),
])
def test_parse_rejects_malformed(reply):
    with pytest.raises(ModelInvocationError):
        parse_result(reply)
