"""Round-robin rotation over the configured YouTube API keys."""

import logging
import threading

logger = logging.getLogger(__name__)


class ApiKeyPool:
    """
    Pool of YouTube API keys handed out in round-robin order.

    The cursor is advanced under a lock, so concurrent requests each get
    the next key rather than racing onto the same one.
    """

    def __init__(self, api_keys: list[str]):
        if not api_keys:
            raise ValueError("At least one YouTube API key must be configured")
        self._keys = list(api_keys)
        self._cursor = 0
        self._lock = threading.Lock()
        logger.info(f"ApiKeyPool initialized with {len(self._keys)} key(s)")

    def __len__(self) -> int:
        return len(self._keys)

    def next_index(self) -> int:
        """Return the index of the next key and advance the cursor."""
        with self._lock:
            index = self._cursor
            self._cursor = (self._cursor + 1) % len(self._keys)
            return index

    def key(self, index: int) -> str:
        return self._keys[index]
