"""Time-boxed in-memory cache keyed by normalized query."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


def normalize_query(query: str) -> str:
    """Cache key for a topic: trimmed and lowercased."""
    return query.strip().lower()


class ResultCache:
    """
    Query -> result cache with a fixed TTL and a size ceiling.

    Entries expire ``ttl_seconds`` after they were stored. Once
    ``max_entries`` is reached the oldest inserted entry is evicted
    (insertion order, not LRU: reads do not refresh an entry).
    Safe to share between concurrent requests.
    """

    def __init__(
        self,
        ttl_seconds: int = 1800,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, query: str) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        key = normalize_query(query)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            value, stored_at = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                logger.debug(f"Cache entry expired: '{key}'")
                return None

            self.hits += 1
            return value

    def set(self, query: str, value: Any) -> None:
        """Store a value, evicting the oldest entries when full."""
        key = normalize_query(query)
        with self._lock:
            # Re-inserting moves the key to the end of the insertion order
            self._entries.pop(key, None)
            while self._entries and len(self._entries) >= self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug(f"Cache full, evicted '{oldest}'")
            self._entries[key] = (value, self._clock())

    def invalidate(self, query: str) -> None:
        with self._lock:
            self._entries.pop(normalize_query(query), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
            }
