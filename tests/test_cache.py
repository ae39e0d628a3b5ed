"""Tests for the TTL cache and cache keys."""

from __future__ import annotations

import threading

from bizcontext.cache import TTLCache, make_cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestMakeCacheKey:
    def test_stable(self):
        assert make_cache_key("p", "a", 1) == make_cache_key("p", "a", 1)

    def test_prefix(self):
        assert make_cache_key("context_profile", "q").startswith("context_profile:")

    def test_parts_do_not_run_together(self):
        assert make_cache_key("p", "ab", "c") != make_cache_key("p", "a", "bc")

    def test_none_equals_empty(self):
        assert make_cache_key("p", None) == make_cache_key("p", "")


class TestTTLCache:
    def test_set_get(self):
        cache = TTLCache()
        cache.set("k", "v")
        assert cache.get("k") == "v"

    def test_miss(self):
        assert TTLCache().get("missing") is None

    def test_expiry(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl=10, clock=clock)
        cache.set("k", "v")
        clock.now = 9.9
        assert cache.get("k") == "v"
        clock.now = 10.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl=10, clock=clock)
        cache.set("short", 1, ttl=1)
        cache.set("long", 2)
        clock.now = 5
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_falsy_values_are_hits(self):
        cache = TTLCache()
        cache.set("zero", 0)
        assert cache.get("zero") == 0

    def test_remove_and_clear(self):
        cache = TTLCache()
        cache.set("a", 1)
        cache.set("b", 2)
        cache.remove("a")
        cache.remove("nope")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0

    def test_stats(self):
        clock = FakeClock()
        cache = TTLCache(default_ttl=10, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2, ttl=1)
        cache.get("a")
        cache.get("zzz")
        clock.now = 2
        stats = cache.stats()
        assert stats["total_keys"] == 2
        assert stats["valid_keys"] == 1
        assert stats["expired_keys"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1

    def test_concurrent_writers(self):
        cache = TTLCache()

        def writer(offset: int):
            for i in range(200):
                cache.set(f"{offset}-{i}", i)
                cache.get(f"{offset}-{i}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 8 * 200
        assert cache.hits == 8 * 200
