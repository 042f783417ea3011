"""Ports for the external media layer (resolution + byte streaming)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

from linkgate.domain.entities import MediaFile


@runtime_checkable
class MediaResolverPort(Protocol):
    """Turns a raw media reference into transferable attributes."""

    async def resolve(self, ref: Any) -> MediaFile:
        """Resolve ``ref`` to file id, name, mime type and size.

        Raises:
            MediaNotFoundError: ``ref`` does not name a known file.
        """
        ...

    def extract_file_id(self, raw: Any) -> str:
        """Extract the file id from a raw media reference."""
        ...


@runtime_checkable
class MediaServerPort(Protocol):
    """Streams the bytes of a previously referenced file."""

    def stream(self, file_id: str) -> AsyncIterator[bytes]:
        """Yield the file content in chunks.

        Raises:
            MediaNotFoundError: ``file_id`` is unknown (raised on first
                iteration at the latest).
        """
        ...

    async def exists(self, file_id: str) -> bool:
        """Check whether ``file_id`` can be streamed."""
        ...
