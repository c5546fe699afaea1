"""Background eviction of expired summaries."""

from __future__ import annotations

import logging
import threading

from inbox_digest.cache.store import SummaryCache
from inbox_digest.exceptions import CacheError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 24 * 60 * 60.0


class EvictionScheduler:
    """Runs ``SummaryCache.evict_expired`` on a daemon thread.

    The first sweep runs as soon as the scheduler starts, then once per
    ``interval`` seconds until ``stop`` is called. A failed sweep is logged
    and retried at the next tick.
    """

    def __init__(self, cache: SummaryCache, interval: float = DEFAULT_INTERVAL):
        self._cache = cache
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="summary-cache-eviction", daemon=True,
        )
        self._thread.start()
        logger.info(f"Cache eviction scheduled every {self.interval:.0f}s")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> int:
        """One sweep. Returns the number of evicted entries, 0 on failure."""
        try:
            return self._cache.evict_expired()
        except CacheError as e:
            logger.warning(f"Cache eviction failed: {e}")
            return 0

    def _run(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self.interval):
                break
