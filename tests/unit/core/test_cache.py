"""
Unit tests for core.cache module.

Tests:
- fetch() hit/miss and stale_time handling
- invalidate() marking by prefix
- reset() dropping by prefix and discarding late writes
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from angorhub.core.cache import QueryCache
from tests.conftest import FakeClock


class TestFetch:
    async def test_miss_then_hit(self) -> None:
        cache = QueryCache()
        loader = AsyncMock(return_value=[1, 2])

        assert await cache.fetch("k", loader) == [1, 2]
        assert await cache.fetch("k", loader) == [1, 2]
        loader.assert_awaited_once()

    async def test_stale_time_triggers_refetch(self, clock: FakeClock) -> None:
        cache = QueryCache(clock=clock)
        loader = AsyncMock(side_effect=["old", "new"])

        assert await cache.fetch("k", loader, stale_time=30) == "old"
        clock.advance(29)
        assert await cache.fetch("k", loader, stale_time=30) == "old"
        clock.advance(1)
        assert await cache.fetch("k", loader, stale_time=30) == "new"

    async def test_exception_stores_nothing(self) -> None:
        cache = QueryCache()
        loader = AsyncMock(side_effect=ValueError("bad"))

        with pytest.raises(ValueError, match="bad"):
            await cache.fetch("k", loader)
        assert "k" not in cache


class TestInvalidate:
    async def test_marks_prefix_stale_but_keeps_value(self) -> None:
        cache = QueryCache()
        cache.set("remote-data-a", 1)
        cache.set("remote-data-b", 2)
        cache.set("bitcoin-price", 3)

        assert cache.invalidate("remote-data-") == 2
        assert cache.get("remote-data-a") == 1
        assert cache.is_stale("remote-data-a") is True
        assert cache.is_stale("bitcoin-price") is False

    async def test_next_fetch_reloads(self) -> None:
        cache = QueryCache()
        cache.set("remote-data-a", "old")
        cache.invalidate("remote-data-")
        assert await cache.fetch("remote-data-a", AsyncMock(return_value="new")) == "new"
        assert cache.is_stale("remote-data-a") is False


class TestReset:
    def test_drops_only_prefix(self) -> None:
        cache = QueryCache()
        cache.set("remote-data-a", 1)
        cache.set("remote-data-b", 2)
        cache.set("bitcoin-price", 3)

        assert cache.reset("remote-data-") == 2
        assert cache.keys() == ["bitcoin-price"]
        assert len(cache) == 1

    def test_bumps_generation(self) -> None:
        cache = QueryCache()
        before = cache.generation
        cache.reset("nothing-")
        assert cache.generation == before + 1

    async def test_late_result_not_written(self) -> None:
        cache = QueryCache()
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow() -> str:
            started.set()
            await release.wait()
            return "late"

        task = asyncio.create_task(cache.fetch("remote-data-k", slow))
        await started.wait()
        cache.reset("remote-data-")
        release.set()

        assert await task == "late"
        assert "remote-data-k" not in cache
