"""
Eleven Interior API - LRUCache Unit Tests
==========================================

What we test:
    ✅ get/put basics and the MISS sentinel
    ✅ LRU eviction order, including promotion by get() and overwrite
    ✅ remove / clear / membership without recency changes
    ✅ capacity validation and stats counters
"""

import pytest

from interior_api.security.lru_cache import MISS, LRUCache


class TestLRUCacheBasics:
    def test_get_missing_returns_miss(self):
        """Absent keys return the falsy MISS sentinel instead of raising."""
        cache = LRUCache(2)
        assert cache.get("nope") is MISS
        assert not MISS

    def test_put_then_get(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        assert cache.get("a") == 1
        assert len(cache) == 1

    def test_none_is_a_storable_value(self):
        """MISS, not None, signals absence, so None can be cached."""
        cache = LRUCache(2)
        cache.put("a", None)
        assert cache.get("a") is None

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_invalid_capacity_rejected(self, capacity):
        with pytest.raises(ValueError):
            LRUCache(capacity)


class TestLRUCacheEviction:
    def test_evicts_least_recently_used(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)
        assert cache.get("a") is MISS
        assert list(cache.keys()) == ["b", "c"]
        assert cache.evictions == 1

    def test_get_promotes_key(self):
        """Reading 'a' makes 'b' the eviction candidate."""
        cache = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)
        assert "a" in cache
        assert "b" not in cache

    def test_overwrite_promotes_without_eviction(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)
        assert len(cache) == 2
        assert cache.evictions == 0
        cache.put("c", 3)
        assert cache.get("a") == 10
        assert "b" not in cache

    def test_length_never_exceeds_capacity(self):
        cache = LRUCache(3)
        for i in range(50):
            cache.put(i, i)
            assert len(cache) <= 3
        assert list(cache.keys()) == [47, 48, 49]

    def test_membership_does_not_change_recency(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert "a" in cache
        cache.put("c", 3)
        assert "a" not in cache

    def test_peek_does_not_change_recency_or_counters(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert cache.peek("a") == 1
        assert cache.peek("zzz") is MISS
        assert (cache.hits, cache.misses) == (0, 0)
        cache.put("c", 3)
        assert "a" not in cache


class TestLRUCacheMaintenance:
    def test_remove(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        assert cache.remove("a") is True
        assert cache.remove("a") is False
        assert len(cache) == 0

    def test_clear(self):
        cache = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()
        assert len(cache) == 0
        assert cache.get("a") is MISS

    def test_stats_counts_hits_and_misses(self):
        cache = LRUCache(4)
        cache.put("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("zzz")
        stats = cache.stats()
        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["capacity"] == 4
