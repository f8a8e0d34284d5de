"""Unit tests for the in-memory SimpleTTLCache."""

import threading

from app.adapters.rate_limit.base import RateLimitProfile
from app.utils.simple_cache import SimpleTTLCache


class FakeClock:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def test_set_and_get_updates_hit_miss_counters() -> None:
    cache: SimpleTTLCache[RateLimitProfile] = SimpleTTLCache(ttl_seconds=10)

    assert cache.get("missing") is None

    profile = RateLimitProfile(permit_limit=3, window_minutes=1)
    cache.set("alice@example.com", profile)

    assert cache.get("alice@example.com") == profile

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_expired_entry_is_evicted() -> None:
    clock = FakeClock()
    cache = SimpleTTLCache(ttl_seconds=5, clock=clock)
    cache.set("key", "value")

    clock.advance(5)

    assert cache.get("key") is None
    assert cache.stats()["evictions"] == 1


def test_per_entry_ttl_overrides_default() -> None:
    clock = FakeClock()
    cache = SimpleTTLCache(ttl_seconds=100, clock=clock)
    cache.set("short", "v", ttl_seconds=2)
    cache.set("long", "v")

    clock.advance(3)

    assert cache.get("short") is None
    assert cache.get("long") == "v"


def test_zero_ttl_does_not_store() -> None:
    cache = SimpleTTLCache(ttl_seconds=0)
    cache.set("key", "value")

    assert cache.get("key") is None
    assert cache.stats()["entries"] == 0


def test_invalidate_removes_single_entry() -> None:
    cache = SimpleTTLCache(ttl_seconds=10)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False
    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_lru_eviction_removes_least_recently_used() -> None:
    cache = SimpleTTLCache(ttl_seconds=100, max_entries=2)
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})

    # Access "a" so that "b" becomes least recently used
    assert cache.get("a") == {"v": 1}

    cache.set("c", {"v": 3})

    assert cache.get("a") == {"v": 1}
    assert cache.get("c") == {"v": 3}
    assert cache.get("b") is None


def test_clear_resets_state() -> None:
    cache = SimpleTTLCache(ttl_seconds=10)
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})
    cache.get("a")

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0
    assert stats["evictions"] == 0


def test_thread_safety_under_concurrent_sets() -> None:
    cache = SimpleTTLCache(ttl_seconds=30, max_entries=None)
    total_keys = 50

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", {"v": idx})

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats()["entries"] == total_keys
    assert cache.get("k-0") == {"v": 0}
    assert cache.get("k-49") == {"v": 49}
