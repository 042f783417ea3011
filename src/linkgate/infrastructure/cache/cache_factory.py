"""Cache factory - picks the adapter that matches the deployment topology."""

from __future__ import annotations

from typing import Literal

import structlog

from linkgate.domain.ports.cache import CachePort
from linkgate.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from linkgate.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from linkgate.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["memory", "diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "memory",
    *,
    directory: str = "./.cache/linkgate",
    redis_url: str = "redis://localhost:6379/0",
    namespace: str = "linkgate",
    max_concurrent: int = 10,
) -> CachePort:
    """Create the cache adapter for ``backend``.

    ``memory`` is correct only while a single worker process both issues
    challenges and answers them; use ``diskcache`` (same host) or
    ``redis`` (any host) when several workers serve launchers.

    Raises:
        ValueError: If `backend` is unknown.
    """
    log.info("cache_factory_create", backend=backend, namespace=namespace)
    if backend == "memory":
        return MemoryCacheAdapter(namespace=namespace)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            namespace=namespace,
            max_concurrent=max_concurrent,
        )
    if backend == "redis":
        return RedisAdapter(
            url=redis_url,
            namespace=namespace,
            max_concurrent=max(max_concurrent, 50),
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'memory', 'diskcache' or 'redis'."
    )
