"""
In-memory cache for loaded fixture collections.

Entries expire after a per-entry TTL and the total size is bounded by
least-recently-used eviction. Expiry is checked lazily; there is no
background timer.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from fixturekit.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with its timing metadata.

    Attributes:
        value: Cached value.
        inserted_at: Clock reading (ms) when the entry was stored.
        ttl_ms: Lifetime in milliseconds.
        last_accessed_at: Clock reading (ms) of the last successful get,
            or the insertion time if never read.
        weight: Size units the entry occupies.
        sequence: Insertion counter, breaks recency ties.
    """

    value: T
    inserted_at: float
    ttl_ms: float
    last_accessed_at: float
    weight: int
    sequence: int

    def is_stale(self, now: float) -> bool:
        """Whether the entry has outlived its TTL."""
        return now >= self.inserted_at + self.ttl_ms


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache counters.

    ``current_size`` can exceed ``max_size`` only when a single entry is
    heavier than the bound.
    """

    hits: int
    misses: int
    evictions: int
    expirations: int
    current_size: int
    max_size: int
    entries: int


class Cache(Generic[T]):
    """
    Key/value store with TTL expiry and size-bounded LRU eviction.

    Size is measured in weight units produced by ``weigher``; the default
    counts one unit per entry.
    """

    def __init__(
        self,
        max_size: int,
        *,
        weigher: Callable[[T], int] | None = None,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        """
        Initialize the cache.

        Args:
            max_size: Size bound in weight units.
            weigher: Returns the weight of a value (default: 1 per entry).
            clock: Millisecond clock, injectable for tests.
        """
        if max_size < 0:
            msg = f"max_size must be >= 0, got {max_size}"
            raise ValueError(msg)
        self.max_size = max_size
        self._weigher = weigher or (lambda _value: 1)
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.RLock()
        self._sequence = 0
        self._current_size = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def get(self, key: str) -> CacheEntry[T] | None:
        """
        Get a live entry.

        A stale entry is removed and reported as a miss.

        Args:
            key: Cache key.

        Returns:
            The entry, or None on miss.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                log.debug("Cache miss", key=key)
                return None
            if entry.is_stale(now):
                self._remove(key)
                self._expirations += 1
                self._misses += 1
                log.debug("Cache miss (stale)", key=key)
                return None
            entry.last_accessed_at = now
            self._hits += 1
            log.debug("Cache hit", key=key)
            return entry

    def set(self, key: str, value: T, ttl_ms: float) -> None:
        """
        Store a value, evicting least-recently-used entries to make room.

        An entry heavier than ``max_size`` is still stored.

        Args:
            key: Cache key. An existing entry under the key is replaced.
            value: Value to cache.
            ttl_ms: Lifetime in milliseconds.
        """
        if ttl_ms < 0:
            msg = f"ttl_ms must be >= 0, got {ttl_ms}"
            raise ValueError(msg)
        weight = self._weigher(value)
        with self._lock:
            now = self._clock()
            if key in self._entries:
                self._remove(key)
            self._sweep(now)
            while self._entries and self._current_size + weight > self.max_size:
                self._evict_one()
            if weight > self.max_size:
                log.warning(
                    "Cache entry exceeds max size",
                    key=key,
                    weight=weight,
                    max_size=self.max_size,
                )
            self._sequence += 1
            self._entries[key] = CacheEntry(
                value=value,
                inserted_at=now,
                ttl_ms=ttl_ms,
                last_accessed_at=now,
                weight=weight,
                sequence=self._sequence,
            )
            self._current_size += weight
            log.debug("Cached value", key=key, weight=weight, ttl_ms=ttl_ms)

    def has(self, key: str) -> bool:
        """Whether a live entry exists; does not count as an access."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_stale(self._clock()):
                self._remove(key)
                self._expirations += 1
                return False
            return True

    def delete(self, key: str) -> bool:
        """
        Remove an entry.

        Args:
            key: Cache key.

        Returns:
            True if an entry was removed.
        """
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            log.debug("Cache invalidated", key=key)
            return True

    def clear(self) -> int:
        """
        Remove all entries. Counters are kept.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._current_size = 0
        log.info("Cache cleared", entries_removed=count)
        return count

    def stats(self) -> CacheStats:
        """Current counters and size."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                current_size=self._current_size,
                max_size=self.max_size,
                entries=len(self._entries),
            )

    def keys(self) -> list[str]:
        """Keys currently stored, stale or not, in insertion order."""
        with self._lock:
            return list(self._entries.keys())

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._current_size -= entry.weight

    def _sweep(self, now: float) -> None:
        stale = [k for k, e in self._entries.items() if e.is_stale(now)]
        for key in stale:
            self._remove(key)
            self._expirations += 1
        if stale:
            log.debug("Swept stale entries", count=len(stale))

    def _evict_one(self) -> None:
        victim = min(
            self._entries,
            key=lambda k: (
                self._entries[k].last_accessed_at,
                self._entries[k].sequence,
            ),
        )
        self._remove(victim)
        self._evictions += 1
        log.debug("Evicted entry", key=victim)
