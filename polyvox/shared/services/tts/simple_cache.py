"""Simple in-memory TTL cache for live voice catalogs."""

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class SimpleCache:
    """
    Bounded in-memory cache with per-entry expiry.

    Least recently read entries are evicted first once ``max_size`` is hit.
    Per-process only: gunicorn workers each hold their own copy.
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl: float = 3600,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            max_size: Maximum number of entries
            ttl: Seconds an entry stays valid (default 1h)
            clock: Monotonic time source, for tests
        """
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(*parts: Any, **params: Any) -> str:
        """Stable 16-char key; keyword params set to None are ignored."""
        payload = {"parts": list(parts)}
        payload.update({k: v for k, v in params.items() if v is not None})
        digest = hashlib.sha256(json.dumps(payload, sort_keys=True).encode())
        return digest.hexdigest()[:16]

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() < entry[1]:
                self._entries.move_to_end(key)
                self.hits += 1
                return entry[0]
            if entry is not None:
                del self._entries[key]
            self.misses += 1
            return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + self.ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted voice cache entry {evicted}")

    def invalidate(self, key: str) -> bool:
        """Drop ``key``; returns whether it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Cleared {len(stale)} expired voice cache entries")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            lookups = self.hits + self.misses
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl": self.ttl,
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": f"{(self.hits / lookups * 100) if lookups else 0:.1f}%",
            }
