"""Per-key mutual exclusion for asyncio tasks.

Concurrent attempts to verify (or publish) the same script collapse into
one: the first caller holds the lock for its key, later callers for the
same key wait, callers for other keys are never blocked.

Each key owns an :class:`asyncio.Lock` that exists only while somebody
holds or waits for it, so the mapping does not grow with every URL the
process has ever seen.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

log = structlog.get_logger(__name__)


class _KeyEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLockHandle:
    """Proof of ownership for one key of a :class:`KeyedLock`.

    Returned by :meth:`KeyedLock.acquire`; ``release()`` is idempotent.
    """

    def __init__(self, owner: KeyedLock, key: str) -> None:
        self._owner = owner
        self.key = key
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._owner._release(self.key)


class KeyedLock:
    """Keyed mutex: at most one holder per key at a time."""

    def __init__(self) -> None:
        self._entries: dict[str, _KeyEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    async def acquire(self, key: str) -> KeyedLockHandle:
        """Wait until ``key`` is free, then take it."""
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _KeyEntry()
        entry.users += 1
        try:
            await entry.lock.acquire()
        except BaseException:
            # Cancelled while waiting: give up our interest in the key.
            self._forget(key, entry)
            raise
        return KeyedLockHandle(self, key)

    def _release(self, key: str) -> None:
        entry = self._entries[key]
        entry.lock.release()
        self._forget(key, entry)

    def _forget(self, key: str, entry: _KeyEntry) -> None:
        entry.users -= 1
        if entry.users == 0:
            del self._entries[key]

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[KeyedLockHandle]:
        """Hold ``key`` for the duration of the ``async with`` block."""
        handle = await self.acquire(key)
        try:
            yield handle
        finally:
            handle.release()
            log.debug("keyed_lock_released", key=key, active_keys=len(self))
