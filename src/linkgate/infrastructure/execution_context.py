"""Execution contexts: running HTTP server vs. offline (CLI, tests)."""

from __future__ import annotations

from pathlib import Path


class ServerExecutionContext:
    """Context of a linkgate server publishing ``document_root``.

    ``is_web_context()`` turns true once the server finished startup
    (the lifespan calls :meth:`mark_serving`).
    """

    def __init__(
        self,
        *,
        document_root: Path,
        server_name: str,
        scheme: str = "https",
    ) -> None:
        self._document_root = Path(document_root)
        self._server_name = server_name
        self._scheme = scheme
        self._serving = False

    def mark_serving(self, serving: bool = True) -> None:
        self._serving = serving

    def is_web_context(self) -> bool:
        return self._serving and bool(self._server_name)

    def document_root(self) -> Path:
        return self._document_root

    def server_name(self) -> str:
        return self._server_name

    def scheme(self) -> str:
        return self._scheme


class OfflineExecutionContext:
    """No public server: default launchers cannot be published."""

    def is_web_context(self) -> bool:
        return False

    def document_root(self) -> Path:
        raise RuntimeError("No document root outside of an HTTP server")

    def server_name(self) -> str:
        raise RuntimeError("No server name outside of an HTTP server")

    def scheme(self) -> str:
        return "https"
