"""Launcher files: bootstrap discovery, deterministic content, atomic publish.

A launcher is a tiny Python file placed under the public document root.
When the document-root dispatcher runs it, it executes the bootstrap file
(making ``linkgate`` importable) and hands the request over to the
download server handler.

Layout::

    <session_dir>/<sha256(bootstrap path)>            launcher
    <session_dir>/<sha256(bootstrap path)>.<random>.temp.py   write-then-rename temp
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import os
import tempfile
from pathlib import Path

import structlog

from linkgate.domain.entities import PublishedScript
from linkgate.infrastructure.concurrency import KeyedLock

log = structlog.get_logger(__name__)

LAUNCHER_MARKER = "# linkgate launcher"
TEMP_SUFFIX = ".temp.py"

_LAUNCHER_TEMPLATE = f'''{LAUNCHER_MARKER} (generated, do not edit)
import os
import runpy

runpy.run_path({{bootstrap!r}})

from linkgate.interfaces.api.download.server import download_server

app = download_server(os.path.dirname(os.path.abspath(__file__)))
'''

_PACKAGE_DIR = Path(__file__).resolve().parents[2]


def default_bootstrap_candidates(package_dir: Path = _PACKAGE_DIR) -> list[Path]:
    """Candidate bootstrap files in priority order.

    Covers a file dropped next to the installed package, a source checkout
    (``src/`` layout) and a project directory holding a virtualenv.
    """
    parents = list(package_dir.parents)
    candidates = [package_dir.parent / "linkgate_bootstrap.py"]
    # src/linkgate -> <checkout>/bootstrap.py
    # <venv>/lib/pythonX.Y/site-packages/linkgate -> <venv>/bootstrap.py, <project>/bootstrap.py
    for depth in (1, 3, 4):
        if depth < len(parents):
            candidates.append(parents[depth] / "bootstrap.py")
    return candidates


def bootstrap_hash(bootstrap_path: Path) -> str:
    return hashlib.sha256(str(bootstrap_path).encode("utf-8")).hexdigest()


def build_launcher(bootstrap_path: Path) -> str:
    return _LAUNCHER_TEMPLATE.format(bootstrap=str(bootstrap_path))


def is_launcher(content: str) -> bool:
    return content.startswith(LAUNCHER_MARKER)


def write_atomic(target: Path, content: str) -> None:
    """Write ``content`` to ``target`` so readers see old or new, never partial.

    Each writer gets its own temp file, so workers publishing the same
    launcher at once never share or rename each other's half-written file.
    """
    fd, temp = tempfile.mkstemp(
        dir=target.parent, prefix=target.name + ".", suffix=TEMP_SUFFIX
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(temp, target)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(temp)
        raise


def _read_or_none(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


class LauncherPublisher:
    """Writes launchers into ``session_dir``, rewriting only stale ones."""

    def __init__(self, session_dir: Path, *, locks: KeyedLock | None = None) -> None:
        self.session_dir = Path(session_dir)
        self._locks = locks or KeyedLock()

    def script_path(self, bootstrap_path: Path) -> Path:
        return self.session_dir / bootstrap_hash(bootstrap_path)

    async def publish(self, bootstrap_path: Path) -> PublishedScript:
        digest = bootstrap_hash(bootstrap_path)
        target = self.session_dir / digest
        content = build_launcher(bootstrap_path)

        async with self._locks.hold(digest):
            current = await asyncio.to_thread(_read_or_none, target)
            if current != content:
                await asyncio.to_thread(self.session_dir.mkdir, parents=True, exist_ok=True)
                await asyncio.to_thread(write_atomic, target, content)
                log.info(
                    "download_script_published",
                    path=str(target),
                    bootstrap=str(bootstrap_path),
                    replaced_stale=current is not None,
                )

        return PublishedScript(
            bootstrap_path=bootstrap_path,
            script_path=target,
            content_hash=hashlib.sha256(content.encode("utf-8")).hexdigest(),
        )
