"""Script verification state backed by CachePort (memory/diskcache/redis)."""

from __future__ import annotations

import structlog

from linkgate.domain.entities import VerificationRecord
from linkgate.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def _challenge_key(url: str) -> str:
    return f"challenge:{url}"


def _response_key(url: str) -> str:
    return f"response:{url}"


def _verified_key(url: str) -> str:
    return f"verified:{url}"


class CacheScriptVerificationStore:
    """Shared source of truth for "is this script URL trusted".

    Pending challenges and echoed responses live in the cache with a short
    TTL.  The verified flag is written without expiry and additionally kept
    in an in-process set, so once a URL is verified this process never asks
    the cache (or the network) about it again.
    """

    def __init__(self, cache: CachePort, challenge_ttl_seconds: int = 60) -> None:
        self.cache = cache
        self.challenge_ttl = challenge_ttl_seconds
        self._verified: set[str] = set()

    async def is_verified(self, url: str) -> bool:
        if url in self._verified:
            return True
        if await self.cache.exists(_verified_key(url)):
            # Verified by another worker sharing the cache.
            self._verified.add(url)
            return True
        return False

    async def record_challenge(self, url: str, nonce: int) -> None:
        await self.cache.delete(_response_key(url))
        await self.cache.set(_challenge_key(url), nonce, ttl=self.challenge_ttl)
        log.debug("script_challenge_recorded", url=url)

    async def record_response(self, url: str, nonce: int) -> bool:
        expected = await self.cache.get(_challenge_key(url))
        if expected is None:
            log.warning("script_response_without_challenge", url=url)
            return False
        await self.cache.set(_response_key(url), nonce, ttl=self.challenge_ttl)
        matched = expected == nonce
        log.debug("script_response_recorded", url=url, matched=matched)
        return matched

    async def confirm(self, url: str, nonce: int) -> bool:
        echoed = await self.cache.get(_response_key(url))
        if echoed is None or echoed != nonce:
            log.warning(
                "script_confirmation_failed",
                url=url,
                response_recorded=echoed is not None,
            )
            return False
        await self.mark_verified(url)
        await self.cache.delete(_challenge_key(url))
        await self.cache.delete(_response_key(url))
        return True

    async def mark_verified(self, url: str) -> None:
        self._verified.add(url)
        await self.cache.set(_verified_key(url), True, ttl=None)

    async def record(self, url: str) -> VerificationRecord | None:
        if await self.is_verified(url):
            return VerificationRecord(script_url=url, nonce=0, verified=True)
        nonce = await self.cache.get(_challenge_key(url))
        if nonce is None:
            return None
        return VerificationRecord(script_url=url, nonce=nonce, verified=False)
