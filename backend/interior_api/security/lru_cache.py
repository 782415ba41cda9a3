"""
Eleven Interior API - Bounded LRU Cache
========================================

What:  Fixed-capacity key/value store with least-recently-used eviction.
How:   collections.OrderedDict keeps keys in recency order; move_to_end() and
       popitem(last=False) are both O(1), so get/put/evict stay constant time
       no matter how many clients are tracked.
Who:   RateLimiter (per-client counters) and CloudinaryService (transformation
       URL memoization).

Concurrency:
    No internal lock. The cache is shared across in-flight requests of one
    asyncio process, and none of its methods await, so each call runs to
    completion without interleaving. Running it under a multi-threaded host
    requires an external lock.
"""

from collections import OrderedDict
from typing import Any, Hashable, Iterator


class _Miss:
    """Sentinel type returned by LRUCache.get() for absent keys."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


class LRUCache:
    """
    Bounded mapping that evicts the least-recently-used entry on overflow.

    Example:
        cache = LRUCache(capacity=2)
        cache.put("a", 1); cache.put("b", 2)
        cache.get("a")          # promotes "a"
        cache.put("c", 3)       # evicts "b"
        cache.get("b") is MISS  # True
    """

    def __init__(self, capacity: int = 1000):
        if capacity < 1:
            raise ValueError(f"LRUCache capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: Hashable) -> Any:
        """Return the value for key and mark it most-recently-used, or MISS."""
        try:
            self._entries.move_to_end(key)
        except KeyError:
            self.misses += 1
            return MISS
        self.hits += 1
        return self._entries[key]

    def put(self, key: Hashable, value: Any) -> None:
        """Insert or overwrite key as most-recently-used, evicting the LRU entry if full."""
        if key in self._entries:
            self._entries.move_to_end(key)
            self._entries[key] = value
            return
        if len(self._entries) >= self._capacity:
            self._entries.popitem(last=False)
            self.evictions += 1
        self._entries[key] = value

    def peek(self, key: Hashable) -> Any:
        """Return the value for key, or MISS, without touching recency or counters."""
        return self._entries.get(key, MISS)

    def remove(self, key: Hashable) -> bool:
        """Drop key if present. Returns whether anything was removed."""
        return self._entries.pop(key, MISS) is not MISS

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[Hashable]:
        """Keys from least- to most-recently-used. Does not change recency."""
        return iter(list(self._entries))

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "capacity": self._capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries
