"""In-process TTL cache shared by the interpretation pipeline and the engine.

Both components treat the cache as read-through: a miss recomputes and then
writes, with no lock held across the computation. Concurrent misses for the
same key may therefore compute twice, but never corrupt an entry.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


def make_cache_key(prefix: str, *parts: object) -> str:
    """Build a stable cache key from arbitrary parts.

    Parts are joined with NUL so ("ab", "c") and ("a", "bc") never collide.
    """
    raw = "\x00".join("" if p is None else str(p) for p in parts)
    digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    return f"{prefix}:{digest}"


class TTLCache:
    """Thread-safe in-memory cache with per-entry time-to-live.

    Usage:
        cache = TTLCache(default_ttl=1800)
        cache.set("key", value)
        cache.get("key")  # -> value, or None once expired
    """

    def __init__(
        self,
        default_ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
        logger.debug("Cache hit: %s", key[:50])
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value; `ttl` seconds overrides the default."""
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            now = self._clock()
            valid = sum(1 for _, exp in self._entries.values() if now < exp)
            return {
                "total_keys": len(self._entries),
                "valid_keys": valid,
                "expired_keys": len(self._entries) - valid,
                "hits": self.hits,
                "misses": self.misses,
            }
