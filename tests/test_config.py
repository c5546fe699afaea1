"""Tests for environment settings."""

import pytest

from inbox_digest.config import Settings
from inbox_digest.exceptions import ConfigError
from inbox_digest.llm.client import DEFAULT_MINI_MODEL


def test_defaults_from_empty_env():
    settings = Settings.from_env({})
    assert settings.anthropic_api_key is None
    assert settings.mini_model == DEFAULT_MINI_MODEL
    assert settings.cache_ttl_days == 30
    assert settings.page_size == 20
    assert settings.body_char_limit == 2000
    assert settings.eviction_interval == 86400.0


def test_values_from_env():
    settings = Settings.from_env({
        "ANTHROPIC_API_KEY": "sk-test",
        "INBOX_DIGEST_MID_MODEL": "claude-opus-test",
        "INBOX_DIGEST_CACHE_PATH": "/tmp/digest.sqlite3",
        "INBOX_DIGEST_PAGE_SIZE": "10",
        "INBOX_DIGEST_EVICTION_INTERVAL": "3600",
        "GOOGLE_CLIENT_ID": "cid",
    })
    assert settings.anthropic_api_key == "sk-test"
    assert settings.mid_model == "claude-opus-test"
    assert settings.cache_path == "/tmp/digest.sqlite3"
    assert settings.page_size == 10
    assert settings.eviction_interval == 3600.0
    assert settings.google_client_id == "cid"


def test_api_key_hidden_from_repr():
    assert "sk-test" not in repr(Settings(anthropic_api_key="sk-test"))


@pytest.mark.parametrize("name,value", [
    ("INBOX_DIGEST_PAGE_SIZE", "twenty"),
    ("INBOX_DIGEST_CACHE_TTL_DAYS", "0"),
    ("INBOX_DIGEST_EVICTION_INTERVAL", "-1"),
])
def test_invalid_numbers_raise(name, value):
    with pytest.raises(ConfigError, match=name):
        Settings.from_env({name: value})
