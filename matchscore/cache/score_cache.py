"""
In-process cache of pairwise match scores.

Entries are keyed by the unordered pair of profile ids, so (A, B) and
(B, A) resolve to the same entry. An entry is treated as absent once it is
older than the TTL (checked lazily on read and swept by evict()), and is
dropped when either profile is invalidated.

Capacity: when the number of entries exceeds max_entries, the oldest
evict_fraction of entries (by insertion time) are removed.

Concurrent misses for the same pair may both compute and both write; the
last write wins. The lock only protects the dictionary itself.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional, Tuple

from ..scoring.schema import MatchBreakdown

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


def pair_key(id_a: str, id_b: str) -> PairKey:
    """Order-independent key for a pair of profile ids."""
    a, b = str(id_a), str(id_b)
    return (a, b) if a <= b else (b, a)


@dataclass
class ScoreCacheEntry:
    """A cached breakdown with its insertion time."""
    breakdown: MatchBreakdown
    timestamp: float


@dataclass
class CacheStats:
    """Counters describing cache effectiveness."""
    hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0
    invalidations: int = 0
    size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ScoreCache:
    """
    TTL + capacity bounded score cache.

    Attributes:
        ttl_seconds: Age after which an entry is stale
        max_entries: Capacity before eviction kicks in
        evict_fraction: Share of oldest entries removed per eviction
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1000,
        evict_fraction: float = 0.2,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Time-to-live of an entry in seconds
            max_entries: Maximum number of entries kept
            evict_fraction: Fraction of oldest entries evicted when full
            clock: Monotonic time source (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if not 0 < evict_fraction <= 1:
            raise ValueError(f"evict_fraction must be in (0, 1], got {evict_fraction}")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.evict_fraction = evict_fraction
        self._clock = clock
        self._entries: "OrderedDict[PairKey, ScoreCacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

    def _is_expired(self, entry: ScoreCacheEntry, now: float) -> bool:
        return now - entry.timestamp >= self.ttl_seconds

    def get(self, id_a: str, id_b: str) -> Optional[MatchBreakdown]:
        """
        Look up the cached breakdown for a pair.

        Args:
            id_a: First profile id
            id_b: Second profile id

        Returns:
            Cached MatchBreakdown, or None if absent or expired
        """
        key = pair_key(id_a, id_b)
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if self._is_expired(entry, now):
                del self._entries[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                return None
            self._stats.hits += 1
            return entry.breakdown

    def put(self, id_a: str, id_b: str, breakdown: MatchBreakdown) -> None:
        """
        Store a breakdown for a pair (last write wins).

        Args:
            id_a: First profile id
            id_b: Second profile id
            breakdown: Computed breakdown
        """
        key = pair_key(id_a, id_b)
        entry = ScoreCacheEntry(breakdown=breakdown, timestamp=self._clock())

        with self._lock:
            # Re-inserting moves the pair to the newest position
            self._entries.pop(key, None)
            self._entries[key] = entry
            over_capacity = len(self._entries) > self.max_entries

        if over_capacity:
            self.evict()

    def invalidate(self, profile_id: str) -> int:
        """
        Drop every entry whose pair contains profile_id.

        Args:
            profile_id: Profile whose matching fields changed

        Returns:
            Number of entries removed
        """
        profile_id = str(profile_id)
        with self._lock:
            keys = [k for k in self._entries if profile_id in k]
            for key in keys:
                del self._entries[key]
            self._stats.invalidations += len(keys)

        if keys:
            logger.debug(f"Invalidated {len(keys)} cached scores for profile {profile_id}")
        return len(keys)

    def evict(self) -> int:
        """
        Remove expired entries, then the oldest entries while over capacity.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        removed = 0

        with self._lock:
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for key in expired:
                del self._entries[key]
            self._stats.expirations += len(expired)
            removed += len(expired)

            if len(self._entries) > self.max_entries:
                n_remove = max(1, int(len(self._entries) * self.evict_fraction))
                n_remove = max(n_remove, len(self._entries) - self.max_entries)
                for _ in range(n_remove):
                    self._entries.popitem(last=False)
                self._stats.evictions += n_remove
                removed += n_remove

        if removed:
            logger.debug(f"Evicted {removed} cached scores ({len(self)} remaining)")
        return removed

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        """Snapshot of cache counters."""
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                expirations=self._stats.expirations,
                evictions=self._stats.evictions,
                invalidations=self._stats.invalidations,
                size=len(self._entries),
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, pair: Tuple[str, str]) -> bool:
        return self.get(*pair) is not None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> Optional["ScoreCache"]:
        """
        Create from main config dictionary.

        Returns:
            ScoreCache, or None when cache.enabled is false
        """
        cache_config = config.get("cache", {})
        if not cache_config.get("enabled", True):
            logger.info("Score cache disabled by configuration")
            return None

        return cls(
            ttl_seconds=cache_config.get("ttl_seconds", 300),
            max_entries=cache_config.get("max_entries", 1000),
            evict_fraction=cache_config.get("evict_fraction", 0.2),
        )
