"""Load published launchers from the document root."""

from __future__ import annotations

import asyncio
import runpy
from pathlib import Path, PurePosixPath
from typing import Any

import structlog

from linkgate.infrastructure.publishing.launcher import is_launcher

log = structlog.get_logger(__name__)

_MARKER_PROBE_BYTES = 64


class LauncherLoader:
    """Finds launchers below ``document_root`` and runs them once.

    A request path is only considered when it stays inside the document
    root after symlink resolution and the file starts with the launcher
    marker line.  The executed module's ``app`` object is cached per
    ``(path, mtime_ns)``, so a republished launcher is picked up.
    """

    def __init__(self, document_root: Path) -> None:
        self.document_root = Path(document_root)
        self._loaded: dict[Path, tuple[int, Any]] = {}

    def _locate(self, request_path: str) -> Path | None:
        relative = PurePosixPath(request_path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            return None
        root = self.document_root.resolve()
        path = (root / relative).resolve()
        if not path.is_relative_to(root) or not path.is_file():
            return None
        with open(path, "r", encoding="utf-8", errors="replace") as fh:
            if not is_launcher(fh.read(_MARKER_PROBE_BYTES)):
                return None
        return path

    def _load_sync(self, request_path: str) -> Any | None:
        path = self._locate(request_path)
        if path is None:
            return None
        mtime = path.stat().st_mtime_ns
        cached = self._loaded.get(path)
        if cached is not None and cached[0] == mtime:
            return cached[1]

        namespace = runpy.run_path(str(path), run_name="linkgate_launcher")
        app = namespace.get("app")
        if app is None or not hasattr(app, "handle"):
            log.warning("launcher_without_handler", path=str(path))
            return None
        self._loaded[path] = (mtime, app)
        log.info("launcher_loaded", path=str(path))
        return app

    async def load(self, request_path: str) -> Any | None:
        """Return the handler published at ``request_path`` (None = not a launcher)."""
        return await asyncio.to_thread(self._load_sync, request_path)
