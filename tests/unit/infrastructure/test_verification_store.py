"""Tests for CacheScriptVerificationStore."""

from __future__ import annotations

import time
from unittest.mock import patch

from linkgate.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from linkgate.infrastructure.persistence.verification_store import (
    CacheScriptVerificationStore,
)

URL = "https://dl.example.com/linkgate/abc"


class TestChallengeResponse:
    async def test_matching_response_confirms(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.record_challenge(URL, 123)
        assert await verification_store.record_response(URL, 123) is True
        assert await verification_store.confirm(URL, 123) is True
        assert await verification_store.is_verified(URL) is True

    async def test_negative_nonce(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        nonce = -(2**63)
        await verification_store.record_challenge(URL, nonce)
        await verification_store.record_response(URL, nonce)
        assert await verification_store.confirm(URL, nonce) is True

    async def test_wrong_response_does_not_confirm(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.record_challenge(URL, 123)
        assert await verification_store.record_response(URL, 999) is False
        assert await verification_store.confirm(URL, 123) is False
        assert await verification_store.is_verified(URL) is False

    async def test_no_response_does_not_confirm(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.record_challenge(URL, 123)
        assert await verification_store.confirm(URL, 123) is False

    async def test_response_without_challenge_is_ignored(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        assert await verification_store.record_response(URL, 123) is False
        # A later challenge with the same nonce must still need its own answer.
        await verification_store.record_challenge(URL, 123)
        assert await verification_store.confirm(URL, 123) is False

    async def test_new_challenge_discards_old_response(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.record_challenge(URL, 1)
        await verification_store.record_response(URL, 1)
        await verification_store.record_challenge(URL, 2)
        assert await verification_store.confirm(URL, 2) is False

    async def test_urls_are_independent(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.record_challenge(URL, 1)
        await verification_store.record_response(URL, 1)
        await verification_store.confirm(URL, 1)
        assert await verification_store.is_verified(URL + "?x=1") is False


class TestVerifiedState:
    async def test_verified_is_sticky(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.mark_verified(URL)
        future = time.monotonic() + 10**9
        with patch.object(time, "monotonic", return_value=future):
            assert await verification_store.is_verified(URL) is True

    async def test_confirm_clears_pending_keys(
        self,
        verification_store: CacheScriptVerificationStore,
        memory_cache: MemoryCacheAdapter,
    ) -> None:
        await verification_store.record_challenge(URL, 7)
        await verification_store.record_response(URL, 7)
        await verification_store.confirm(URL, 7)
        assert await memory_cache.exists(f"challenge:{URL}") is False
        assert await memory_cache.exists(f"response:{URL}") is False
        assert await memory_cache.get(f"verified:{URL}") is True

    async def test_challenge_expires(
        self, memory_cache: MemoryCacheAdapter
    ) -> None:
        store = CacheScriptVerificationStore(memory_cache, challenge_ttl_seconds=5)
        await store.record_challenge(URL, 7)
        future = time.monotonic() + 6
        with patch.object(time, "monotonic", return_value=future):
            assert await store.record_response(URL, 7) is False

    async def test_verified_by_other_worker(
        self, memory_cache: MemoryCacheAdapter
    ) -> None:
        worker_a = CacheScriptVerificationStore(memory_cache)
        worker_b = CacheScriptVerificationStore(memory_cache)

        await worker_a.record_challenge(URL, 5)
        # The challenge is answered by the other worker.
        assert await worker_b.record_response(URL, 5) is True
        assert await worker_a.confirm(URL, 5) is True
        assert await worker_b.is_verified(URL) is True


class TestRecord:
    async def test_unknown_url(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        assert await verification_store.record(URL) is None

    async def test_pending(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.record_challenge(URL, 9)
        record = await verification_store.record(URL)
        assert record is not None
        assert record.nonce == 9
        assert record.verified is False

    async def test_verified(
        self, verification_store: CacheScriptVerificationStore
    ) -> None:
        await verification_store.mark_verified(URL)
        record = await verification_store.record(URL)
        assert record is not None
        assert record.verified is True
        assert record.script_url == URL
