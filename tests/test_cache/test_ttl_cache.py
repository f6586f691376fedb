"""Tests for TTLCache and cache key construction.

All tests drive expiry with a FakeClock instead of sleeping.
"""

import pytest

from fxrates.cache import CacheEntry, TTLCache, make_cache_key
from tests.helpers import FakeClock


class TestMakeCacheKey:
    """Deterministic keys from endpoint + parameters."""

    def test_no_params_is_endpoint(self) -> None:
        assert make_cache_key("popular-pairs") == "popular-pairs"
        assert make_cache_key("popular-pairs", {}) == "popular-pairs"

    def test_param_order_does_not_matter(self) -> None:
        a = make_cache_key("exchange-rate", {"fromCurrency": "USD", "toCurrency": "EUR"})
        b = make_cache_key("exchange-rate", {"toCurrency": "EUR", "fromCurrency": "USD"})
        assert a == b

    def test_different_params_do_not_collide(self) -> None:
        a = make_cache_key("exchange-rate", {"fromCurrency": "USD", "toCurrency": "EUR"})
        b = make_cache_key("exchange-rate", {"fromCurrency": "EUR", "toCurrency": "USD"})
        c = make_cache_key(
            "exchange-rate",
            {"fromCurrency": "USD", "toCurrency": "EUR", "date": "2024-01-01"},
        )
        assert len({a, b, c}) == 3

    def test_none_values_dropped(self) -> None:
        with_none = make_cache_key("exchange-rate", {"fromCurrency": "USD", "date": None})
        without = make_cache_key("exchange-rate", {"fromCurrency": "USD"})
        assert with_none == without

    def test_endpoints_do_not_collide(self) -> None:
        params = {"fromCurrency": "USD", "toCurrency": "EUR"}
        assert make_cache_key("exchange-rate", params) != make_cache_key(
            "currency-analytics", params
        )


class TestTTLCache:
    """Set/get/expiry semantics."""

    def test_get_missing_returns_none(self, cache: TTLCache) -> None:
        assert cache.get("nope") is None
        assert cache.is_valid("nope") is False

    def test_set_then_valid(self, cache: TTLCache) -> None:
        cache.set("k", {"rate": 1}, ttl=1000)
        assert cache.is_valid("k") is True
        assert cache.get("k") == {"rate": 1}
        assert cache.get_valid("k") == {"rate": 1}

    def test_expires_at_ttl_boundary(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("k", "v", ttl=1000)
        clock.advance(0.5)
        assert cache.is_valid("k") is True
        clock.advance(0.5)
        # now - timestamp == ttl -> no longer valid
        assert cache.is_valid("k") is False

    def test_expired_entry_is_shadowed_not_evicted(
        self, cache: TTLCache, clock: FakeClock
    ) -> None:
        cache.set("k", "v", ttl=1000)
        clock.advance(5)
        assert cache.get_valid("k") is None
        assert cache.get("k") == "v"
        assert cache.stats().size == 1

    def test_default_ttl_used(self, clock: FakeClock) -> None:
        cache = TTLCache(default_ttl_ms=2000, clock=clock)
        cache.set("k", "v")
        clock.advance(1.5)
        assert cache.is_valid("k")
        clock.advance(1)
        assert not cache.is_valid("k")

    def test_overwrite_resets_timestamp(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("k", "old", ttl=1000)
        clock.advance(0.8)
        cache.set("k", "new", ttl=1000)
        clock.advance(0.8)
        assert cache.get_valid("k") == "new"

    def test_falsy_values_are_cached(self, cache: TTLCache) -> None:
        cache.set("empty", [], ttl=1000)
        assert cache.is_valid("empty")
        assert cache.get_valid("empty") == []

    def test_clear_and_stats(self, cache: TTLCache) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        stats = cache.stats()
        assert stats.size == 2
        assert stats.keys == ["a", "b"]

        cache.clear()
        assert cache.stats().size == 0
        assert cache.stats().keys == []

    def test_invalidate(self, cache: TTLCache) -> None:
        cache.set("a", 1)
        cache.invalidate("a")
        cache.invalidate("missing")
        assert cache.get("a") is None

    def test_injected_storage_is_used(self, clock: FakeClock) -> None:
        storage: dict[str, CacheEntry] = {}
        cache = TTLCache(clock=clock, storage=storage)
        cache.set("k", "v", ttl=500)
        assert storage["k"] == CacheEntry(data="v", timestamp=1_700_000_000_000, ttl=500)

    def test_isolated_instances(self, clock: FakeClock) -> None:
        a = TTLCache(clock=clock)
        b = TTLCache(clock=clock)
        a.set("k", 1)
        assert b.get("k") is None


class TestCapacityBound:
    """Optional max_entries hardening."""

    def test_rejects_non_positive_bound(self) -> None:
        with pytest.raises(ValueError):
            TTLCache(max_entries=0)

    def test_sweep_expired(self, cache: TTLCache, clock: FakeClock) -> None:
        cache.set("short", 1, ttl=1000)
        cache.set("long", 2, ttl=10_000)
        clock.advance(2)
        assert cache.sweep_expired() == 1
        assert cache.stats().keys == ["long"]

    def test_full_cache_sweeps_expired_first(self, clock: FakeClock) -> None:
        cache = TTLCache(clock=clock, max_entries=2)
        cache.set("a", 1, ttl=1000)
        clock.advance(0.1)
        cache.set("b", 2, ttl=60_000)
        clock.advance(2)  # "a" expired, "b" still valid
        cache.set("c", 3)
        assert sorted(cache.stats().keys) == ["b", "c"]

    def test_full_cache_drops_oldest_when_nothing_expired(self, clock: FakeClock) -> None:
        cache = TTLCache(clock=clock, max_entries=2)
        cache.set("a", 1, ttl=60_000)
        clock.advance(0.1)
        cache.set("b", 2, ttl=60_000)
        clock.advance(0.1)
        cache.set("c", 3, ttl=60_000)
        assert sorted(cache.stats().keys) == ["b", "c"]

    def test_overwriting_existing_key_does_not_evict(self, clock: FakeClock) -> None:
        cache = TTLCache(clock=clock, max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        assert cache.stats().size == 2
        assert cache.get("b") == 2
