"""Content-addressed summary cache."""

from inbox_digest.cache.keys import cache_key, fingerprint
from inbox_digest.cache.locks import KeyedLocks
from inbox_digest.cache.scheduler import EvictionScheduler
from inbox_digest.cache.store import DEFAULT_TTL, SummaryCache

__all__ = [
    "DEFAULT_TTL",
    "EvictionScheduler",
    "KeyedLocks",
    "SummaryCache",
    "cache_key",
    "fingerprint",
]
