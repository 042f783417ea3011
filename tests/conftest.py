"""Shared test fixtures for the linkgate test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from linkgate.domain.entities import MediaFile
from linkgate.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from linkgate.infrastructure.persistence.verification_store import (
    CacheScriptVerificationStore,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def media_file() -> MediaFile:
    """Minimal valid MediaFile."""
    return MediaFile(
        file_id="photos/cat.jpg",
        name="cat.jpg",
        mime_type="image/jpeg",
        size=1234,
    )


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_cache() -> MemoryCacheAdapter:
    """Fresh in-process cache."""
    return MemoryCacheAdapter(namespace="test")


@pytest.fixture()
def verification_store(
    memory_cache: MemoryCacheAdapter,
) -> CacheScriptVerificationStore:
    """Verification store over the in-process cache."""
    return CacheScriptVerificationStore(memory_cache, challenge_ttl_seconds=60)


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=False)
    cache.exists = AsyncMock(return_value=False)
    return cache


@pytest.fixture()
def mock_verifier() -> MagicMock:
    """Mock ScriptVerificationUseCase that accepts every URL."""
    verifier = MagicMock()
    verifier.execute = AsyncMock(return_value=None)
    return verifier


# ---------------------------------------------------------------------------
# Filesystem fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def document_root(tmp_path: Path) -> Path:
    """Public document root."""
    root = tmp_path / "public"
    root.mkdir()
    return root


@pytest.fixture()
def bootstrap_file(tmp_path: Path) -> Path:
    """Bootstrap file that does nothing (linkgate is already importable)."""
    path = tmp_path / "bootstrap.py"
    path.write_text("# test bootstrap\n", encoding="utf-8")
    return path


@pytest.fixture()
def media_dir(tmp_path: Path) -> Path:
    """Media library with two files."""
    root = tmp_path / "media"
    (root / "photos").mkdir(parents=True)
    (root / "photos" / "cat.jpg").write_bytes(b"\xff\xd8meow")
    (root / "notes.txt").write_text("hello world", encoding="utf-8")
    return root
