"""In-memory TTL caches owned by the service container."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Payload stamped with the moment it was resolved and its freshness window."""

    payload: T
    timestamp: float
    ttl: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.timestamp)

    def is_fresh(self, now: float) -> bool:
        return self.age(now) < self.ttl

    def remaining(self, now: float) -> float:
        return max(0.0, self.ttl - self.age(now))


class TTLCache(Generic[K, T]):
    """Thread-safe map whose entries go stale ``ttl`` seconds after they are stored.

    Stale entries are kept until replaced or evicted so callers can still fall
    back to the last good value when a fresh resolution fails.
    """

    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[K, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def get(self, key: K) -> T | None:
        """Return the payload for ``key`` when present and fresh."""

        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry.payload

    def entry(self, key: K) -> CacheEntry[T] | None:
        """Return the raw entry for ``key`` even when it has gone stale."""

        with self._lock:
            return self._entries.get(key)

    def put(self, key: K, payload: T) -> CacheEntry[T]:
        entry = CacheEntry(payload=payload, timestamp=self._clock(), ttl=self.ttl)
        with self._lock:
            self._entries[key] = entry
        return entry

    def evict(self, *keys: K) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["CacheEntry", "TTLCache"]
