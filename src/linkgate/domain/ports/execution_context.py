"""Port describing the HTTP-server environment the gateway runs in."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ExecutionContextPort(Protocol):
    """Where (and whether) launchers can be published for public access.

    The default script publisher asks only this port, never request
    globals, so it runs the same under tests as behind a real server.
    """

    def is_web_context(self) -> bool:
        """True when a public HTTP server serves the document root."""
        ...

    def document_root(self) -> Path:
        """Directory whose contents are reachable over HTTP."""
        ...

    def server_name(self) -> str:
        """Public host name (optionally with port) of the server."""
        ...

    def scheme(self) -> str:
        """URL scheme used for public links (``https`` by default)."""
        ...
