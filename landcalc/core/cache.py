"""In-process TTL cache.

Entries expire lazily: an expired entry is dropped the next time it is read.
Concurrency policy: last writer wins. The cache is shared across requests on
one event loop with no locking; concurrent writes for the same key are
expected to carry the same value, so duplicate writes are harmless and there
is no read-modify-write.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Small key/value cache with a fixed time-to-live per entry.

    Example:
        >>> cache = TTLCache[float](ttl_seconds=3600)
        >>> cache.set("90001", 0.095)
        >>> cache.get("90001")
        0.095
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        """Initialize cache.

        Args:
            ttl_seconds: Lifetime of each entry from the moment it is set
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry[V]] = {}

    def get(self, key: str) -> V | None:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at < self._clock():
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + self.ttl_seconds)

    def expiry(self, key: str) -> float | None:
        """Clock reading at which ``key`` expires, if present."""
        entry = self._entries.get(key)
        return entry.expires_at if entry else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
