"""Cache Port - where challenges, echoes and verified flags are kept."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Async key/value store with optional per-key expiry.

    Whether verification works across worker processes depends only on
    which adapter backs this port:

      - MemoryCacheAdapter: one process
      - DiskcacheAdapter: every process on one host
      - RedisAdapter: every process that reaches the Redis server

    Adapters are opened and closed with ``async with``.
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None when missing or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store ``value``; ``ttl=None`` keeps it until deleted."""
        ...

    async def delete(self, key: str) -> bool:
        """True if a live key was removed."""
        ...

    async def exists(self, key: str) -> bool: ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
