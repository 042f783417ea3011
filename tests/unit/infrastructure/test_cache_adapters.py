"""Tests for the CachePort adapters and the cache factory."""

from __future__ import annotations

import time
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from linkgate.infrastructure.cache import create_cache
from linkgate.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from linkgate.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from linkgate.infrastructure.cache.redis_adapter import RedisAdapter


class TestMemoryCacheAdapter:
    async def test_set_and_get(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", 42)
        assert await memory_cache.get("k") == 42
        assert await memory_cache.exists("k") is True

    async def test_missing_key(self, memory_cache: MemoryCacheAdapter) -> None:
        assert await memory_cache.get("nope") is None
        assert await memory_cache.exists("nope") is False

    async def test_delete(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", 1)
        assert await memory_cache.delete("k") is True
        assert await memory_cache.delete("k") is False
        assert await memory_cache.get("k") is None

    async def test_ttl_expires(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", 1, ttl=10)
        future = time.monotonic() + 11
        with patch.object(time, "monotonic", return_value=future):
            assert await memory_cache.exists("k") is False
            assert await memory_cache.get("k") is None

    async def test_no_ttl_never_expires(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("k", 1, ttl=None)
        future = time.monotonic() + 10**9
        with patch.object(time, "monotonic", return_value=future):
            assert await memory_cache.get("k") == 1

    async def test_namespaces_are_isolated(self) -> None:
        a = MemoryCacheAdapter(namespace="a")
        await a.set("k", 1)
        assert a._data == {"a:k": (1, None)}

    async def test_context_manager_clears(self) -> None:
        cache = MemoryCacheAdapter()
        async with cache:
            await cache.set("k", 1)
        assert await cache.get("k") is None


class TestDiskcacheAdapter:
    async def test_round_trip(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(tmp_path / "dc", namespace="t") as cache:
            await cache.set("challenge:u", -17, ttl=60)
            assert await cache.get("challenge:u") == -17
            assert await cache.exists("challenge:u") is True
            assert await cache.delete("challenge:u") is True
            assert await cache.exists("challenge:u") is False

    async def test_shared_between_instances(self, tmp_path: Path) -> None:
        directory = tmp_path / "dc"
        async with DiskcacheAdapter(directory) as first:
            async with DiskcacheAdapter(directory) as second:
                await first.set("verified:u", True)
                assert await second.get("verified:u") is True

    async def test_requires_open(self, tmp_path: Path) -> None:
        cache = DiskcacheAdapter(tmp_path / "dc")
        with pytest.raises(RuntimeError, match="not initialized"):
            await cache.get("k")

    async def test_closed_cache_reports_missing(self, tmp_path: Path) -> None:
        cache = DiskcacheAdapter(tmp_path / "dc")
        assert await cache.exists("k") is False
        assert await cache.delete("k") is False


class TestRedisAdapter:
    @pytest.fixture()
    def client(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture()
    def adapter(self, client: AsyncMock) -> RedisAdapter:
        adapter = RedisAdapter(namespace="t")
        adapter._client = client
        return adapter

    async def test_set_passes_ttl(self, adapter: RedisAdapter, client: AsyncMock) -> None:
        await adapter.set("challenge:u", 5, ttl=60)
        client.set.assert_awaited_once_with("t:challenge:u", "5", ex=60)

    async def test_set_without_ttl(self, adapter: RedisAdapter, client: AsyncMock) -> None:
        await adapter.set("verified:u", True)
        assert client.set.await_args.kwargs == {"ex": None}

    async def test_get_decodes_json(self, adapter: RedisAdapter, client: AsyncMock) -> None:
        client.get.return_value = b"-3"
        assert await adapter.get("k") == -3

    async def test_get_error_is_a_miss(self, adapter: RedisAdapter, client: AsyncMock) -> None:
        client.get.side_effect = RedisConnectionError("down")
        assert await adapter.get("k") is None

    async def test_set_error_propagates(
        self, adapter: RedisAdapter, client: AsyncMock
    ) -> None:
        client.set.side_effect = RedisConnectionError("down")
        with pytest.raises(RedisConnectionError):
            await adapter.set("k", 1)

    async def test_exists(self, adapter: RedisAdapter, client: AsyncMock) -> None:
        client.exists.return_value = 1
        assert await adapter.exists("k") is True
        client.exists.assert_awaited_once_with("t:k")

    async def test_requires_open(self) -> None:
        with pytest.raises(RuntimeError, match="not initialized"):
            await RedisAdapter().get("k")


class TestCacheFactory:
    def test_memory_is_default(self) -> None:
        assert isinstance(create_cache(), MemoryCacheAdapter)

    def test_diskcache(self, tmp_path: Path) -> None:
        cache = create_cache("diskcache", directory=str(tmp_path), namespace="n")
        assert isinstance(cache, DiskcacheAdapter)
        assert cache.namespace == "n"

    def test_redis(self) -> None:
        cache = create_cache("redis", redis_url="redis://cache:6379/1")
        assert isinstance(cache, RedisAdapter)
        assert cache.url == "redis://cache:6379/1"

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown cache backend"):
            create_cache("memcached")  # type: ignore[arg-type]
