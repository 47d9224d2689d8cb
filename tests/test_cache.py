"""
TTL cache: lazy expiry, overwrite, clear, counters.
"""
from guideproxy.core.cache import TTLCache

from conftest import FakeClock


def test_get_before_expiry_returns_stored_bytes():
    clock = FakeClock()
    cache = TTLCache(300, clock=clock)
    cache.set("matches.json", b"[1]")
    clock.advance(299.9)
    assert cache.get("matches.json") == b"[1]"


def test_expired_entry_is_evicted_on_read():
    clock = FakeClock()
    cache = TTLCache(300, clock=clock)
    cache.set("matches.json", b"[1]")
    clock.advance(300)
    assert len(cache) == 1        # not swept until read
    assert cache.get("matches.json") is None
    assert len(cache) == 0


def test_set_overwrites_and_restarts_ttl():
    clock = FakeClock()
    cache = TTLCache(300, clock=clock)
    cache.set("movies.json", b"old")
    clock.advance(200)
    cache.set("movies.json", b"new")
    clock.advance(200)
    assert cache.get("movies.json") == b"new"


def test_clear_drops_everything():
    cache = TTLCache(300, clock=FakeClock())
    cache.set("a", b"1")
    cache.set("b", b"2")
    assert cache.clear() == 2
    assert cache.get("a") is None
    assert cache.get("b") is None


def test_hit_and_miss_counters():
    cache = TTLCache(300, clock=FakeClock())
    cache.get("series.json")
    cache.set("series.json", b"[]")
    cache.get("series.json")
    cache.get("series.json")
    stats = cache.stats()
    assert stats["hits"] == 2
    assert stats["misses"] == 1
    assert stats["keys"]["series.json"]["bytes"] == 2
