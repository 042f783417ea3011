"""In-process cache adapter - a dict with monotonic expiry."""

from __future__ import annotations

import time
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class MemoryCacheAdapter:
    """Process-local implementation of ``CachePort``.

    Only valid when the challenger and the responder of a script
    verification run in the same process (single uvicorn worker).
    All operations run on the event loop thread, no locking needed.
    """

    def __init__(self, namespace: str = "linkgate") -> None:
        self.namespace = namespace
        self._data: dict[str, tuple[Any, float | None]] = {}

    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._data.clear()

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _live(self, key: str) -> tuple[Any, float | None] | None:
        item = self._data.get(self._key(key))
        if item is None:
            return None
        _, expires_at = item
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._data[self._key(key)]
            return None
        return item

    async def get(self, key: str) -> Any | None:
        item = self._live(key)
        log.debug("cache_get", key=key, hit=item is not None)
        return None if item is None else item[0]

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl is not None else None
        self._data[self._key(key)] = (value, expires_at)
        log.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> bool:
        if self._live(key) is None:
            return False
        del self._data[self._key(key)]
        return True

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None
