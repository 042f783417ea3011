"""Challenge/response verification of download script URLs."""

from __future__ import annotations

import secrets

import httpx
import structlog

from linkgate.domain.entities import UnreachableScriptError
from linkgate.domain.entities.download import (
    CHALLENGE_NONCE_PARAM,
    CHALLENGE_URL_PARAM,
)
from linkgate.domain.ports import ScriptVerificationStorePort
from linkgate.infrastructure.concurrency import KeyedLock

log = structlog.get_logger(__name__)

_INT64_MIN = -(2**63)
_INT64_SPAN = 2**64


def new_nonce() -> int:
    """Random nonce over the full signed 64-bit range."""
    return secrets.randbelow(_INT64_SPAN) + _INT64_MIN


class ScriptVerificationUseCase:
    """Proves that a script URL is reachable and wired to this process.

    Flow:
        1. Fast path: already verified -> done (no lock taken)
        2. Take the per-URL lock, re-check (another caller may have won)
        3. Register a fresh nonce as pending challenge
        4. GET <url>?c=<url>&i=<nonce> (status and body are ignored)
        5. The handler behind <url> echoes the nonce into the shared store
        6. Nonce echoed -> URL verified for the rest of the process,
           otherwise UnreachableScriptError (never retried here)
    """

    def __init__(
        self,
        *,
        store: ScriptVerificationStorePort,
        http_client: httpx.AsyncClient,
        locks: KeyedLock | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._store = store
        self._http = http_client
        self._locks = locks or KeyedLock()
        self._timeout = timeout_seconds

    async def execute(self, url: str) -> None:
        if await self._store.is_verified(url):
            return

        async with self._locks.hold(url):
            if await self._store.is_verified(url):
                log.debug("script_verified_concurrently", url=url)
                return

            nonce = new_nonce()
            await self._store.record_challenge(url, nonce)
            log.info("script_challenge_sent", url=url)

            try:
                await self._http.get(
                    url,
                    params={
                        CHALLENGE_URL_PARAM: url,
                        CHALLENGE_NONCE_PARAM: str(nonce),
                    },
                    timeout=self._timeout,
                )
            except httpx.HTTPError as e:
                log.warning("script_challenge_failed", url=url, error=str(e))
                raise UnreachableScriptError(url, reason=str(e) or type(e).__name__) from e

            if not await self._store.confirm(url, nonce):
                log.error("script_not_verified", url=url)
                raise UnreachableScriptError(url)

        log.info("script_verified", url=url)
