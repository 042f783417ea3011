"""Media library backed by a local directory.

File ids are POSIX paths relative to the library root; anything that
escapes the root is treated as unknown.
"""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterator, Mapping
from pathlib import Path, PurePosixPath
from typing import Any

import structlog

from linkgate.domain.entities import MediaFile, MediaNotFoundError

log = structlog.get_logger(__name__)

_CHUNK_SIZE = 64 * 1024
_DEFAULT_MIME = "application/octet-stream"


class DirectoryMediaLibrary:
    """Implements ``MediaResolverPort`` and ``MediaServerPort`` over a directory."""

    def __init__(self, root: Path, *, chunk_size: int = _CHUNK_SIZE) -> None:
        self.root = Path(root)
        self._chunk_size = chunk_size

    def extract_file_id(self, raw: Any) -> str:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, Mapping):
            for key in ("file_id", "f", "id"):
                if raw.get(key):
                    return str(raw[key])
        raise MediaNotFoundError(f"Cannot extract a file id from {raw!r}")

    def _path_for(self, file_id: str) -> Path:
        relative = PurePosixPath(file_id)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise MediaNotFoundError(f"Unknown media: {file_id}")
        root = self.root.resolve()
        path = (root / relative).resolve()
        if not path.is_relative_to(root) or not path.is_file():
            raise MediaNotFoundError(f"Unknown media: {file_id}")
        return path

    async def resolve(self, ref: Any) -> MediaFile:
        file_id = self.extract_file_id(ref)
        path = await asyncio.to_thread(self._path_for, file_id)
        stat = await asyncio.to_thread(path.stat)
        mime, _ = mimetypes.guess_type(path.name)
        return MediaFile(
            file_id=file_id,
            name=path.name,
            mime_type=mime or _DEFAULT_MIME,
            size=stat.st_size,
        )

    async def exists(self, file_id: str) -> bool:
        try:
            await asyncio.to_thread(self._path_for, file_id)
        except MediaNotFoundError:
            return False
        return True

    async def stream(self, file_id: str) -> AsyncIterator[bytes]:
        path = await asyncio.to_thread(self._path_for, file_id)
        fh = await asyncio.to_thread(open, path, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(fh.read, self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await asyncio.to_thread(fh.close)
            log.debug("media_stream_closed", file_id=file_id)
