"""Per-key mutual exclusion."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class _Slot:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0


class KeyedLocks:
    """A lock per key, created on demand and dropped when no thread holds or waits on it.

    Usage::

        with locks.hold(key):
            ...  # only one thread at a time for this key
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._slots: dict[str, _Slot] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _Slot()
            slot.holders += 1

        slot.lock.acquire()
        try:
            yield
        finally:
            slot.lock.release()
            with self._guard:
                slot.holders -= 1
                if slot.holders == 0:
                    del self._slots[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)
