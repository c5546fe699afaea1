"""Content-addressed cache keys."""

from __future__ import annotations

import hashlib
from enum import Enum

FINGERPRINT_LENGTH = 16


def fingerprint(body: str) -> str:
    """First 16 hex chars of the SHA-256 of the UTF-8 encoded body."""
    return hashlib.sha256(body.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def cache_key(provider: Enum | str, message_id: str, body: str) -> str:
    """``provider:message_id:fingerprint``. Any body edit yields a new key."""
    name = provider.value if isinstance(provider, Enum) else provider
    return f"{name}:{message_id}:{fingerprint(body)}"
