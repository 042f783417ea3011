"""Redis adapter - verification state shared across hosts."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """``CachePort`` on ``redis.asyncio``.

    Values are stored as JSON (nonces and flags only, readable with
    ``redis-cli``).  A failed read counts as a miss, so the verifier reports
    the script as unreachable; a failed write propagates, so a challenge is
    never treated as recorded when it was not.

    Args:
        url: Redis URL (e.g. `redis://localhost:6379/0`).
        namespace: Prefix for every key.
        max_concurrent: Upper bound of in-flight Redis commands.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        namespace: str = "linkgate",
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self.namespace = namespace
        self._client: Redis | None = None
        self._slots = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is not None:
            return self
        client = Redis.from_url(self.url)
        try:
            await client.ping()
        except RedisError as e:
            log.error("redis_connection_failed", url=self.url, error=str(e))
            await client.aclose()
            raise
        self._client = client
        log.info("redis_connected", url=self.url, namespace=self.namespace)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            log.info("redis_closed")

    def _connected(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Any | None:
        client = self._connected()
        try:
            async with self._slots:
                raw = await client.get(self._key(key))
        except RedisError as e:
            log.error("redis_get_error", key=key, error=str(e))
            return None
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._connected()
        try:
            async with self._slots:
                await client.set(self._key(key), json.dumps(value), ex=ttl)
        except RedisError as e:
            log.error("redis_set_error", key=key, error=str(e))
            raise

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        try:
            async with self._slots:
                return await self._client.delete(self._key(key)) > 0
        except RedisError as e:
            log.error("redis_delete_error", key=key, error=str(e))
            return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        try:
            async with self._slots:
                return await self._client.exists(self._key(key)) > 0
        except RedisError as e:
            log.error("redis_exists_error", key=key, error=str(e))
            return False
