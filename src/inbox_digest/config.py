"""Settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from inbox_digest.exceptions import ConfigError
from inbox_digest.llm.client import BODY_CHAR_LIMIT, DEFAULT_MID_MODEL, DEFAULT_MINI_MODEL


@dataclass
class Settings:
    """Runtime settings. Build with ``Settings.from_env()`` or pass values directly."""

    anthropic_api_key: str | None = field(default=None, repr=False)
    mini_model: str = DEFAULT_MINI_MODEL
    mid_model: str = DEFAULT_MID_MODEL
    body_char_limit: int = BODY_CHAR_LIMIT
    cache_path: str = "inbox_digest_cache.sqlite3"
    cache_ttl_days: int = 30
    eviction_interval: float = 24 * 60 * 60.0
    page_size: int = 20
    max_workers: int = 4
    google_client_id: str | None = None
    google_client_secret: str | None = field(default=None, repr=False)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            mini_model=env.get("INBOX_DIGEST_MINI_MODEL", DEFAULT_MINI_MODEL),
            mid_model=env.get("INBOX_DIGEST_MID_MODEL", DEFAULT_MID_MODEL),
            body_char_limit=_int(env, "INBOX_DIGEST_BODY_CHAR_LIMIT", BODY_CHAR_LIMIT),
            cache_path=env.get("INBOX_DIGEST_CACHE_PATH", "inbox_digest_cache.sqlite3"),
            cache_ttl_days=_int(env, "INBOX_DIGEST_CACHE_TTL_DAYS", 30),
            eviction_interval=_float(env, "INBOX_DIGEST_EVICTION_INTERVAL", 24 * 60 * 60.0),
            page_size=_int(env, "INBOX_DIGEST_PAGE_SIZE", 20),
            max_workers=_int(env, "INBOX_DIGEST_MAX_WORKERS", 4),
            google_client_id=env.get("GOOGLE_CLIENT_ID") or None,
            google_client_secret=env.get("GOOGLE_CLIENT_SECRET") or None,
        )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value
