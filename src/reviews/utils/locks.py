"""Keyed locks — one mutex per key, created on first use.

Gives the Review Store a single writer per review and per
(product, author) pair, and the recomputation engine a single writer
per product.
"""

import threading
from contextlib import contextmanager


class KeyedLocks:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *parts):
        key = ":".join(str(part) for part in parts)
        lock = self._lock_for(key)
        with lock:
            yield
