"""Tests for the effect cache and the cached_effect decorator."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from cidgraph.cache.decorators import cached_effect
from cidgraph.cache.effect import EffectCache
from cidgraph.cache.keys import CacheKeys
from cidgraph.core.exceptions import CacheError, ResolutionUnavailableError
from cidgraph.core.models import LinkReference, RelationshipRecord


class CountingFactory:
    """Async factory that counts calls and can fail a set number of times."""

    def __init__(self, result=None, failures: int = 0, error: type[Exception] = ValueError):
        self.calls = 0
        self.result = result
        self.failures = failures
        self.error = error

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise self.error(f"failure {self.calls}")
        return self.result


# ============================================================================
# Memoization Tests
# ============================================================================


class TestMemoization:
    """Tests for in-process memoization."""

    async def test_sequential_calls_run_once(self):
        cache = EffectCache()
        factory = CountingFactory(result="payload")

        first = await cache.run("op", "bafkreione", factory)
        second = await cache.run("op", "bafkreione", factory)

        assert first == second == "payload"
        assert factory.calls == 1
        assert cache.misses == 1
        assert cache.hits == 1

    async def test_concurrent_calls_share_one_fetch(self):
        """Concurrent callers for one key should share a single in-flight fetch."""
        cache = EffectCache()
        factory = CountingFactory(result="payload")

        results = await asyncio.gather(
            *(cache.run("op", "bafkreione", factory) for _ in range(5))
        )

        assert results == ["payload"] * 5
        assert factory.calls == 1

    async def test_keys_are_per_operation(self):
        cache = EffectCache()
        factory = CountingFactory(result="payload")

        await cache.run("metadata", "bafkreione", factory)
        await cache.run("address", "bafkreione", factory)

        assert factory.calls == 2
        assert len(cache) == 2
        assert ("metadata", "bafkreione") in cache

    async def test_clear(self):
        cache = EffectCache()
        factory = CountingFactory(result="payload")

        await cache.run("op", "bafkreione", factory)
        cache.clear()
        await cache.run("op", "bafkreione", factory)

        assert factory.calls == 2

    async def test_max_entries_evicts_oldest_settled(self):
        cache = EffectCache(max_entries=2)
        factory = CountingFactory(result="payload")

        for key in ("bafkreione", "bafkreitwo", "bafkreithree"):
            await cache.run("op", key, factory)

        assert len(cache) == 2
        assert ("op", "bafkreione") not in cache
        assert ("op", "bafkreithree") in cache

        await cache.run("op", "bafkreione", factory)
        assert factory.calls == 4

    async def test_max_entries_keeps_in_flight(self):
        """Entries still being fetched should never be evicted."""
        cache = EffectCache(max_entries=1)
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "slow"

        first = asyncio.ensure_future(cache.run("op", "bafkreione", slow))
        second = asyncio.ensure_future(cache.run("op", "bafkreitwo", slow))
        await asyncio.sleep(0)

        assert len(cache) == 2

        release.set()
        assert await asyncio.gather(first, second) == ["slow", "slow"]


# ============================================================================
# Error Handling Tests
# ============================================================================


class TestErrorHandling:
    """Tests for failure memoization."""

    async def test_errors_not_cached_by_default(self):
        """A failed run should be evicted so the next call retries."""
        cache = EffectCache()
        factory = CountingFactory(result="payload", failures=1)

        with pytest.raises(ValueError):
            await cache.run("op", "bafkreione", factory)
        assert ("op", "bafkreione") not in cache

        assert await cache.run("op", "bafkreione", factory) == "payload"
        assert factory.calls == 2

    async def test_listed_errors_cached(self):
        """Errors named in cache_errors should be memoized."""
        cache = EffectCache()
        calls = 0

        async def unavailable():
            nonlocal calls
            calls += 1
            raise ResolutionUnavailableError("gone", cid="bafkreione", attempts=3)

        for _ in range(3):
            with pytest.raises(ResolutionUnavailableError):
                await cache.run(
                    "op", "bafkreione", unavailable, cache_errors=(ResolutionUnavailableError,)
                )

        assert calls == 1

    async def test_unlisted_errors_evicted(self):
        cache = EffectCache()
        factory = CountingFactory(result="payload", failures=1, error=KeyError)

        with pytest.raises(KeyError):
            await cache.run("op", "bafkreione", factory, cache_errors=(ValueError,))

        assert await cache.run("op", "bafkreione", factory, cache_errors=(ValueError,)) == "payload"

    async def test_cache_errors_true(self):
        cache = EffectCache()
        factory = CountingFactory(failures=10)

        for _ in range(2):
            with pytest.raises(ValueError):
                await cache.run("op", "bafkreione", factory, cache_errors=True)

        assert factory.calls == 1

    async def test_cancelled_waiter_keeps_shared_fetch(self):
        """Cancelling one waiter should not cancel the fetch other waiters share."""
        cache = EffectCache()
        gate = asyncio.Event()

        async def slow():
            await gate.wait()
            return "payload"

        first = asyncio.ensure_future(cache.run("op", "bafkreione", slow))
        second = asyncio.ensure_future(cache.run("op", "bafkreione", slow))
        await asyncio.sleep(0)

        first.cancel()
        gate.set()

        assert await second == "payload"
        with pytest.raises(asyncio.CancelledError):
            await first


# ============================================================================
# Persistent Tier Tests
# ============================================================================


class TestPersistentTier:
    """Tests for the optional Redis tier."""

    @pytest.fixture
    def backend(self) -> AsyncMock:
        backend = AsyncMock()
        backend.get.return_value = None
        return backend

    @pytest.fixture
    def record(self) -> RelationshipRecord:
        return RelationshipRecord(to=LinkReference(cid="bafkreito"))

    async def test_writes_through(self, backend: AsyncMock, record: RelationshipRecord):
        cache = EffectCache(backend, ttl=60)
        factory = CountingFactory(result=record)

        await cache.run("relationship_data", "bafkreirel", factory, model=RelationshipRecord)

        backend.set.assert_awaited_once_with(
            CacheKeys.effect("relationship_data", "bafkreirel"),
            {"from": None, "to": {"/": "bafkreito"}},
            ttl=60,
        )

    async def test_reads_back(self, backend: AsyncMock):
        backend.get.return_value = {"to": {"/": "bafkreistored"}}
        cache = EffectCache(backend)
        factory = CountingFactory()

        result = await cache.run("relationship_data", "bafkreirel", factory, model=RelationshipRecord)

        assert factory.calls == 0
        assert result.to_cid == "bafkreistored"

    async def test_unreadable_entry_refetched(self, backend: AsyncMock, record: RelationshipRecord):
        backend.get.return_value = {"unexpected": True}
        cache = EffectCache(backend)
        factory = CountingFactory(result=record)

        result = await cache.run("relationship_data", "bafkreirel", factory, model=RelationshipRecord)

        assert factory.calls == 1
        assert result == record

    async def test_backend_failure_degrades(self, backend: AsyncMock, record: RelationshipRecord):
        """Redis errors should fall back to fetching."""
        backend.get.side_effect = CacheError("Redis GET failed")
        backend.set.side_effect = CacheError("Redis SET failed")
        cache = EffectCache(backend)
        factory = CountingFactory(result=record)

        result = await cache.run("relationship_data", "bafkreirel", factory, model=RelationshipRecord)

        assert result == record
        assert factory.calls == 1

    async def test_skipped_without_model(self, backend: AsyncMock):
        cache = EffectCache(backend)

        await cache.run("op", "bafkreione", CountingFactory(result="payload"))

        backend.get.assert_not_awaited()
        backend.set.assert_not_awaited()


# ============================================================================
# Decorator Tests
# ============================================================================


class Fetcher:
    def __init__(self, cache: EffectCache | None) -> None:
        self._cache = cache
        self.calls = 0

    @cached_effect("lookup")
    async def lookup(self, cid: str, *, suffix: str = "") -> str:
        self.calls += 1
        return cid + suffix


class TestCachedEffectDecorator:
    """Tests for the cached_effect decorator."""

    async def test_routes_through_cache(self):
        cache = EffectCache()
        fetcher = Fetcher(cache)

        assert await fetcher.lookup("bafkreione") == "bafkreione"
        assert await fetcher.lookup("bafkreione") == "bafkreione"

        assert fetcher.calls == 1
        assert ("lookup", "bafkreione") in cache

    async def test_no_cache_calls_directly(self):
        fetcher = Fetcher(None)

        await fetcher.lookup("bafkreione", suffix="!")
        await fetcher.lookup("bafkreione", suffix="!")

        assert fetcher.calls == 2

    def test_preserves_name(self):
        assert Fetcher.lookup.__name__ == "lookup"
