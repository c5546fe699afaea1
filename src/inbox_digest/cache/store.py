"""Durable summary cache backed by SQLite."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from inbox_digest.cache.keys import cache_key
from inbox_digest.exceptions import CacheUnavailableError
from inbox_digest.models import CacheEntry, Provider, RoutingResult

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=30)

MEMORY_PATH = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS summaries (
    key        TEXT PRIMARY KEY,
    payload    TEXT NOT NULL,
    cached_at  REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_summaries_cached_at ON summaries (cached_at);
CREATE TABLE IF NOT EXISTS last_open (
    user_id    TEXT PRIMARY KEY,
    opened_at  REAL NOT NULL
);
"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SummaryCache:
    """Maps ``provider:message_id:fingerprint(body)`` to a summary.

    One coarse lock serializes every statement and each write commits before
    the lock is released, so a ``put`` is visible to the next ``get`` and an
    eviction sweep never sees a half-written row.

    Args:
        path: SQLite database file, or ``":memory:"``.
        ttl: Entries older than this are removed by ``evict_expired``.
        clock: Returns the current timezone-aware time.
    """

    def __init__(
        self,
        path: str | Path = MEMORY_PATH,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] | None = None,
    ):
        self.path = str(path)
        self.ttl = ttl
        self._clock = clock or utcnow
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        with self._lock:
            if self._conn is not None:
                return
            try:
                if self.path != MEMORY_PATH:
                    Path(self.path).parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.path, check_same_thread=False)
                conn.executescript(_SCHEMA)
                conn.commit()
            except (sqlite3.Error, OSError) as e:
                raise CacheUnavailableError(
                    f"Cannot open summary cache at {self.path}: {e}"
                ) from e
            self._conn = conn
        logger.info(f"Summary cache opened at {self.path}")

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Summary cache closed")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> SummaryCache:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def get(self, provider: Provider | str, message_id: str, body: str) -> CacheEntry | None:
        """Cached entry for this exact body, or None. Read only."""
        key = cache_key(provider, message_id, body)
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT payload, cached_at FROM summaries WHERE key = ?",
                    (key,),
                ).fetchone()
            except sqlite3.Error as e:
                raise CacheUnavailableError(f"Cache read failed: {e}") from e

        if row is None:
            return None
        try:
            payload = json.loads(row[0])
            return CacheEntry.from_payload(payload, _from_timestamp(row[1]))
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable cache entry {key}: {e}")
            return None

    def put(
        self,
        provider: Provider | str,
        message_id: str,
        body: str,
        result: RoutingResult,
    ) -> CacheEntry:
        """Insert or overwrite the entry for this body, stamped with now."""
        key = cache_key(provider, message_id, body)
        entry = CacheEntry.from_result(result, cached_at=self._clock())
        payload = json.dumps(entry.to_payload())
        with self._lock:
            conn = self._connection()
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO summaries (key, payload, cached_at) "
                    "VALUES (?, ?, ?)",
                    (key, payload, entry.cached_at.timestamp()),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise CacheUnavailableError(f"Cache write failed: {e}") from e
        return entry

    def evict_expired(self) -> int:
        """Delete entries older than the TTL. Returns how many were removed."""
        cutoff = (self._clock() - self.ttl).timestamp()
        with self._lock:
            conn = self._connection()
            try:
                cursor = conn.execute(
                    "DELETE FROM summaries WHERE cached_at < ?", (cutoff,)
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise CacheUnavailableError(f"Cache eviction failed: {e}") from e
        removed = cursor.rowcount
        logger.info(f"Evicted {removed} expired cache entries")
        return removed

    def __len__(self) -> int:
        with self._lock:
            conn = self._connection()
            try:
                return conn.execute("SELECT COUNT(*) FROM summaries").fetchone()[0]
            except sqlite3.Error as e:
                raise CacheUnavailableError(f"Cache read failed: {e}") from e

    # ------------------------------------------------------------------
    # Last open bookkeeping
    # ------------------------------------------------------------------

    def get_last_open(self, user_id: str) -> datetime | None:
        with self._lock:
            conn = self._connection()
            try:
                row = conn.execute(
                    "SELECT opened_at FROM last_open WHERE user_id = ?", (user_id,)
                ).fetchone()
            except sqlite3.Error as e:
                raise CacheUnavailableError(f"Cache read failed: {e}") from e
        return _from_timestamp(row[0]) if row else None

    def set_last_open(self, user_id: str, opened_at: datetime | None = None) -> datetime:
        opened_at = opened_at or self._clock()
        with self._lock:
            conn = self._connection()
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO last_open (user_id, opened_at) VALUES (?, ?)",
                    (user_id, opened_at.timestamp()),
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise CacheUnavailableError(f"Cache write failed: {e}") from e
        return opened_at

    def _connection(self) -> sqlite3.Connection:
        """Open connection; caller holds ``self._lock``."""
        if self._conn is None:
            raise CacheUnavailableError("Summary cache is not open.")
        return self._conn


def _from_timestamp(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)
