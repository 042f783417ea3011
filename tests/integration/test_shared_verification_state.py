"""Two workers sharing a diskcache directory verify a script together.

Worker A sends the challenge, worker B (a separate store and cache
handle, like a second uvicorn process) receives the echo.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from linkgate.application.use_cases import ScriptVerificationUseCase
from linkgate.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from linkgate.infrastructure.persistence.verification_store import (
    CacheScriptVerificationStore,
)

pytestmark = pytest.mark.integration

URL = "https://dl.example.com/linkgate/abc"


async def test_challenge_answered_by_other_worker(tmp_path: Path) -> None:
    directory = tmp_path / "shared"
    async with DiskcacheAdapter(directory) as cache_a, DiskcacheAdapter(
        directory
    ) as cache_b:
        worker_a = CacheScriptVerificationStore(cache_a)
        worker_b = CacheScriptVerificationStore(cache_b)

        async def worker_b_handler(request: httpx.Request) -> httpx.Response:
            params = request.url.params
            await worker_b.record_response(params["c"], int(params["i"]))
            return httpx.Response(204)

        async with httpx.AsyncClient(
            transport=httpx.MockTransport(worker_b_handler)
        ) as client:
            uc = ScriptVerificationUseCase(store=worker_a, http_client=client)
            await uc.execute(URL)

        assert await worker_a.is_verified(URL) is True
        assert await worker_b.is_verified(URL) is True


async def test_verified_flag_survives_restart(tmp_path: Path) -> None:
    directory = tmp_path / "shared"
    async with DiskcacheAdapter(directory) as cache:
        await CacheScriptVerificationStore(cache).mark_verified(URL)

    async with DiskcacheAdapter(directory) as cache:
        assert await CacheScriptVerificationStore(cache).is_verified(URL) is True
