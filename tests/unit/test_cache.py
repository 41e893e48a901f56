"""Tests for the response cache."""

import asyncio
import gc
from collections.abc import Callable

import pytest
from sharesalert.config import CacheConfig
from sharesalert.data.cache import CacheEntry, ResponseCache


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance_minutes(self, minutes: float) -> None:
        self.now += minutes * 60


class TestResponseCache:
    """Tests for ResponseCache."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock()

    @pytest.fixture
    def cache(self, clock: FakeClock) -> ResponseCache:
        """Create cache instance on a simulated clock."""
        return ResponseCache(CacheConfig(), timer=clock)

    def test_set_and_get(self, cache: ResponseCache) -> None:
        """Cache stores and retrieves values."""
        cache.set("k", 42, 1)
        assert cache.get("k") == 42

    def test_cache_miss(self, cache: ResponseCache) -> None:
        assert cache.get("stocks:all") is None
        assert cache.get("stocks:all", default=[]) == []

    def test_expired_entry_is_absent(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.set("k", 42, 2)

        clock.advance_minutes(1.5)
        assert cache.get("k") == 42

        clock.advance_minutes(0.5)
        assert cache.get("k") is None
        assert "k" not in cache

    def test_set_overwrites_value_and_expiry(
        self, cache: ResponseCache, clock: FakeClock
    ) -> None:
        cache.set("k", "old", 1)
        cache.set("k", "new", 5)

        clock.advance_minutes(3)
        assert cache.get("k") == "new"

    def test_entries_expire_independently(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.set("stock:GCB", {"price": 5.2}, 1)
        cache.set("stock:details:GCB", {"shares": 10}, 5)

        clock.advance_minutes(2)

        assert cache.get("stock:GCB") is None
        assert cache.get("stock:details:GCB") == {"shares": 10}

    def test_entry_exposes_expiry(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.set("k", "v", 1.5)

        entry = cache.entry("k")

        assert entry == CacheEntry(value="v", expires_at=clock.now + 90)
        clock.advance_minutes(2)
        assert cache.entry("k") is None

    def test_delete(self, cache: ResponseCache) -> None:
        cache.set("k", 42, 10)
        cache.delete("k")
        assert cache.get("k") is None

    def test_delete_missing_key(self, cache: ResponseCache) -> None:
        cache.delete("missing")

    def test_clear(self, cache: ResponseCache) -> None:
        keys = ["stocks:all", "stock:GCB", "alerts:all:all"]
        for key in keys:
            cache.set(key, key.upper(), 5)

        cache.clear()

        assert all(cache.get(key) is None for key in keys)
        assert len(cache) == 0

    def test_invalidate_prefix(self, cache: ResponseCache) -> None:
        cache.set("alerts:all:all", [], 1)
        cache.set("alerts:active:user-1", [], 1)
        cache.set("stocks:all", [], 1)

        removed = cache.invalidate_prefix("alerts:")

        assert removed == 2
        assert cache.get("alerts:all:all") is None
        assert cache.get("alerts:active:user-1") is None
        assert cache.get("stocks:all") == []

    def test_falsy_values_are_cached(self, cache: ResponseCache) -> None:
        cache.set("alerts:all:all", [], 1)
        assert cache.get("alerts:all:all", default="missing") == []

    def test_non_positive_ttl_stores_nothing(self, cache: ResponseCache) -> None:
        cache.set("k", 1, 5)
        cache.set("k", 2, 0)
        assert cache.get("k") is None

    def test_unbounded_by_default(self, cache: ResponseCache) -> None:
        for i in range(500):
            cache.set(f"stock:S{i}", i, 1)
        assert len(cache) == 500

    def test_max_size_evicts_least_recently_used(self, clock: FakeClock) -> None:
        cache = ResponseCache(CacheConfig(max_size=2), timer=clock)
        cache.set("a", 1, 5)
        cache.set("b", 2, 5)
        cache.get("a")
        cache.set("c", 3, 5)

        assert cache.get("a") == 1
        assert cache.get("b") is None
        assert cache.get("c") == 3

    def test_cache_disabled(self) -> None:
        """Cache returns the default when disabled."""
        cache = ResponseCache(CacheConfig(enabled=False))

        cache.set("k", 42, 1)

        assert cache.get("k") is None

    def test_independent_instances(self, clock: FakeClock) -> None:
        first = ResponseCache(timer=clock)
        second = ResponseCache(timer=clock)

        first.set("k", 1, 1)

        assert second.get("k") is None

    def test_cache_stats(self, cache: ResponseCache) -> None:
        """Cache statistics are tracked correctly."""
        cache.set("stock:GCB", 1, 1)

        cache.get("stock:GCB")  # Hit
        cache.get("stock:SCB")  # Miss
        cache.get("stock:GCB")  # Hit

        stats = cache.get_stats()

        assert stats["hits"] == 2
        assert stats["misses"] == 1
        assert stats["total_requests"] == 3
        assert abs(stats["hit_rate"] - 0.667) < 0.01
        assert stats["size"] == 1


class TestGetOrFetch:
    """Tests for ResponseCache.get_or_fetch."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        return FakeClock()

    @pytest.fixture
    def cache(self, clock: FakeClock) -> ResponseCache:
        return ResponseCache(timer=clock)

    async def test_cache_hit_skips_fetch(self, cache: ResponseCache) -> None:
        """get_or_fetch returns cached value."""
        cache.set("stock:GCB", {"price": 5.2}, 1)
        fetch_called = False

        async def fetch_fn() -> dict[str, float]:
            nonlocal fetch_called
            fetch_called = True
            return {"price": 9.9}

        value = await cache.get_or_fetch("stock:GCB", fetch_fn, 1)

        assert value["price"] == 5.2
        assert not fetch_called

    async def test_cache_miss_fetches_and_stores(
        self, cache: ResponseCache, clock: FakeClock
    ) -> None:
        calls = 0

        async def fetch_fn() -> dict[str, float]:
            nonlocal calls
            calls += 1
            return {"price": 5.2}

        assert await cache.get_or_fetch("stock:GCB", fetch_fn, 1) == {"price": 5.2}
        assert await cache.get_or_fetch("stock:GCB", fetch_fn, 1) == {"price": 5.2}
        assert calls == 1

        clock.advance_minutes(1)
        await cache.get_or_fetch("stock:GCB", fetch_fn, 1)
        assert calls == 2

    async def test_concurrent_callers_share_one_fetch(self, cache: ResponseCache) -> None:
        calls = 0
        release = asyncio.Event()

        async def fetch_fn() -> list[str]:
            nonlocal calls
            calls += 1
            await release.wait()
            return ["GCB", "SCB"]

        waiters = [
            asyncio.create_task(cache.get_or_fetch("stocks:all", fetch_fn, 2)) for _ in range(3)
        ]
        await asyncio.sleep(0)
        assert cache.get_stats()["in_flight"] == 1

        release.set()
        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert all(result == ["GCB", "SCB"] for result in results)
        assert cache.get_stats()["in_flight"] == 0
        assert cache.get_stats()["deduplicated"] == 2

    async def test_fetch_error_propagates_and_is_not_cached(self, cache: ResponseCache) -> None:
        attempts = 0

        async def failing_fetch() -> int:
            nonlocal attempts
            attempts += 1
            raise RuntimeError("backend down")

        with pytest.raises(RuntimeError, match="backend down"):
            await cache.get_or_fetch("stocks:all", failing_fetch, 2)

        assert cache.get("stocks:all") is None
        assert cache.get_stats()["in_flight"] == 0

        async def working_fetch() -> int:
            return 7

        assert await cache.get_or_fetch("stocks:all", working_fetch, 2) == 7
        assert attempts == 1

    async def test_concurrent_waiters_all_see_error(self, cache: ResponseCache) -> None:
        release = asyncio.Event()

        async def failing_fetch() -> int:
            await release.wait()
            raise RuntimeError("boom")

        waiters = [
            asyncio.create_task(cache.get_or_fetch("k", failing_fetch, 1)) for _ in range(2)
        ]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert all(isinstance(result, RuntimeError) for result in results)

    @pytest.mark.parametrize(
        "invalidate",
        [
            lambda cache: cache.delete("alerts:all:all"),
            lambda cache: cache.invalidate_prefix("alerts:"),
            lambda cache: cache.clear(),
        ],
        ids=["delete", "invalidate_prefix", "clear"],
    )
    async def test_invalidation_detaches_pending_fetch(
        self, cache: ResponseCache, invalidate: Callable[[ResponseCache], object]
    ) -> None:
        release = asyncio.Event()

        async def stale_fetch() -> list[str]:
            await release.wait()
            return []

        async def fresh_fetch() -> list[str]:
            return ["a1"]

        stale_read = asyncio.create_task(cache.get_or_fetch("alerts:all:all", stale_fetch, 1))
        await asyncio.sleep(0)
        assert cache.get_stats()["in_flight"] == 1

        invalidate(cache)

        assert await cache.get_or_fetch("alerts:all:all", fresh_fetch, 1) == ["a1"]
        assert cache.get_stats()["deduplicated"] == 0

        release.set()
        assert await stale_read == []
        assert cache.get("alerts:all:all") == ["a1"]
        assert cache.get_stats()["in_flight"] == 0

    async def test_invalidated_fetch_is_not_stored(self, cache: ResponseCache) -> None:
        release = asyncio.Event()

        async def stale_fetch() -> list[str]:
            await release.wait()
            return []

        stale_read = asyncio.create_task(cache.get_or_fetch("alerts:all:all", stale_fetch, 1))
        await asyncio.sleep(0)

        cache.delete("alerts:all:all")
        release.set()

        assert await stale_read == []
        assert "alerts:all:all" not in cache

    async def test_unrelated_prefix_keeps_pending_fetch(self, cache: ResponseCache) -> None:
        release = asyncio.Event()

        async def fetch_fn() -> list[str]:
            await release.wait()
            return ["GCB"]

        first = asyncio.create_task(cache.get_or_fetch("stocks:all", fetch_fn, 2))
        await asyncio.sleep(0)

        cache.invalidate_prefix("alerts:")
        second = asyncio.create_task(cache.get_or_fetch("stocks:all", fetch_fn, 2))
        await asyncio.sleep(0)
        release.set()

        assert await asyncio.gather(first, second) == [["GCB"], ["GCB"]]
        assert cache.get_stats()["deduplicated"] == 1
        assert cache.get("stocks:all") == ["GCB"]

    async def test_abandoned_fetch_error_is_retrieved(self, cache: ResponseCache) -> None:
        loop = asyncio.get_running_loop()
        reported: list[dict[str, object]] = []
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        release = asyncio.Event()

        async def failing_fetch() -> int:
            await release.wait()
            raise RuntimeError("boom")

        try:
            waiter = asyncio.create_task(cache.get_or_fetch("k", failing_fetch, 1))
            await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

            release.set()
            while cache.get_stats()["in_flight"]:
                await asyncio.sleep(0)
            await asyncio.sleep(0)
            gc.collect()
        finally:
            loop.set_exception_handler(previous_handler)

        assert reported == []

    async def test_disabled_cache_always_fetches(self) -> None:
        cache = ResponseCache(CacheConfig(enabled=False))
        calls = 0

        async def fetch_fn() -> int:
            nonlocal calls
            calls += 1
            return calls

        assert await cache.get_or_fetch("k", fetch_fn, 1) == 1
        assert await cache.get_or_fetch("k", fetch_fn, 1) == 2
