"""Ports for the shared registries behind script verification."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from linkgate.domain.entities import VerificationRecord


@runtime_checkable
class ScriptVerificationStorePort(Protocol):
    """Single source of truth for "is this script URL trusted".

    The challenger (verifier) and the responder (download server handler)
    must observe the same store for a verification to succeed.
    """

    async def is_verified(self, url: str) -> bool: ...

    async def record_challenge(self, url: str, nonce: int) -> None:
        """Register the nonce the verifier expects to be echoed for ``url``."""
        ...

    async def record_response(self, url: str, nonce: int) -> bool:
        """Store an echoed nonce; True when it matches the pending challenge."""
        ...

    async def confirm(self, url: str, nonce: int) -> bool:
        """Mark ``url`` verified if ``nonce`` was echoed back for it."""
        ...

    async def mark_verified(self, url: str) -> None: ...

    async def record(self, url: str) -> VerificationRecord | None:
        """Current verification state for ``url`` (None = never challenged)."""
        ...


@runtime_checkable
class ScriptUrlRegistryPort(Protocol):
    """Maps a bootstrap-path hash to the verified URL of its launcher."""

    def get(self, bootstrap_hash: str) -> str | None: ...

    def put(self, bootstrap_hash: str, url: str) -> None: ...
