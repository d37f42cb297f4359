"""
In-memory result cache keyed by normalized query.

Bounded LRU with an optional TTL; ``ttl <= 0`` keeps entries until they
are evicted by capacity or cleared.
"""

import logging
import time
from collections import OrderedDict
from typing import Callable, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_query(query: str) -> str:
    """Cache key for a query: lowercased and trimmed."""
    return query.lower().strip()


class ResultCache(Generic[T]):
    def __init__(
        self,
        capacity: int = 100,
        ttl: float = 0.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[str, Tuple[float, T]]" = OrderedDict()

    def _expired(self, stored_at: float, now: float) -> bool:
        return self.ttl > 0 and now - stored_at >= self.ttl

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        stale = [key for key, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Cache purged {len(stale)} expired entries")
        return len(stale)

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._expired(stored_at, self._clock()):
            del self._entries[key]
            logger.debug(f"Cache entry expired: {key!r}")
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache evicted {evicted!r}")

    def clear(self) -> int:
        """Drop every entry; returns how many there were."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._entries)
