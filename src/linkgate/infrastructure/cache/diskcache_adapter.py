"""Diskcache adapter - SQLite-backed store shared by workers on one host."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)

T = TypeVar("T")


class DiskcacheAdapter:
    """``CachePort`` over ``diskcache.Cache``.

    Every worker that opens the same directory sees the same keys, which is
    what the challenge/response round needs when several uvicorn workers
    serve one launcher.  diskcache is synchronous: calls run in a thread,
    at most ``max_concurrent`` at a time (SQLite lock contention).
    """

    def __init__(
        self,
        directory: str | Path = "./.cache/linkgate",
        *,
        namespace: str = "linkgate",
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.namespace = namespace
        self._cache: DiskCache | None = None
        self._slots = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> DiskcacheAdapter:
        if self._cache is None:
            self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info("diskcache_opened", directory=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        cache, self._cache = self._cache, None
        if cache is not None:
            await asyncio.to_thread(cache.close)
            log.info("diskcache_closed", directory=str(self.directory))

    def _opened(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError(
                "Cache not initialized. Use 'async with cache:' or await cache.__aenter__()"
            )
        return self._cache

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def _run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        async with self._slots:
            return await asyncio.to_thread(fn, *args, **kwargs)

    async def get(self, key: str) -> Optional[Any]:
        value = await self._run(self._opened().get, self._key(key), default=None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        await self._run(self._opened().set, self._key(key), value, expire=ttl)
        log.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> bool:
        if self._cache is None:
            return False
        return await self._run(self._cache.delete, self._key(key))

    async def exists(self, key: str) -> bool:
        if self._cache is None:
            return False
        # "in" honours expiry
        return await self._run(self._cache.__contains__, self._key(key))
