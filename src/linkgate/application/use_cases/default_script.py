"""Default download script: locate bootstrap, publish launcher, map to URL."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import quote

import structlog

from linkgate.application.use_cases.script_verification import (
    ScriptVerificationUseCase,
)
from linkgate.domain.entities import ConfigurationError, PathContainmentError
from linkgate.domain.ports import ExecutionContextPort, ScriptUrlRegistryPort
from linkgate.infrastructure.publishing.launcher import (
    LauncherPublisher,
    bootstrap_hash,
)

log = structlog.get_logger(__name__)


def locate_bootstrap(
    candidates: Sequence[Path], explicit: Path | None = None
) -> Path:
    """Return the first existing candidate (only ``explicit`` when it is set).

    Raises:
        ConfigurationError: No candidate exists (all tried paths are listed).
    """
    if explicit is not None:
        candidates = [explicit]
    for path in candidates:
        if path.exists():
            return path
    attempted = [str(p) for p in candidates]
    raise ConfigurationError(
        "Could not locate the linkgate bootstrap file in any of the following "
        f"paths: {', '.join(attempted)}",
        attempted=attempted,
    )


def public_url(script_path: Path, context: ExecutionContextPort) -> str:
    """Map a published file to its public URL.

    Raises:
        PathContainmentError: The canonical file is not below the canonical
            document root.
    """
    root = context.document_root().resolve()
    canonical = script_path.resolve(strict=True)
    if not canonical.is_relative_to(root):
        raise PathContainmentError(canonical, root)
    relative = canonical.relative_to(root).as_posix()
    return f"{context.scheme()}://{context.server_name()}/{quote(relative)}"


class DefaultScriptUseCase:
    """Produces the verified URL of the auto-generated launcher.

    Flow:
        1. Refuse outside of an HTTP server (ConfigurationError)
        2. Locate the bootstrap file (explicit setting or candidates)
        3. Known bootstrap hash -> cached URL
        4. Publish the launcher (rewritten only when stale, atomically;
           filesystem errors become ConfigurationError)
        5. Map the canonical file path to a public URL (containment check)
        6. Verify the URL, then cache it for the process lifetime
    """

    def __init__(
        self,
        *,
        context: ExecutionContextPort,
        publisher: LauncherPublisher,
        verifier: ScriptVerificationUseCase,
        registry: ScriptUrlRegistryPort,
        bootstrap_candidates: Sequence[Path],
        bootstrap_path: Path | None = None,
    ) -> None:
        self._context = context
        self._publisher = publisher
        self._verifier = verifier
        self._registry = registry
        self._candidates = list(bootstrap_candidates)
        self._bootstrap_path = bootstrap_path

    async def execute(self) -> str:
        if not self._context.is_web_context():
            raise ConfigurationError(
                "Please specify a download script URL when issuing links "
                "outside of a running linkgate server!"
            )

        bootstrap = await asyncio.to_thread(
            locate_bootstrap, self._candidates, self._bootstrap_path
        )
        digest = bootstrap_hash(bootstrap)

        cached = self._registry.get(digest)
        if cached is not None:
            return cached

        try:
            published = await self._publisher.publish(bootstrap)
            url = await asyncio.to_thread(
                public_url, published.script_path, self._context
            )
        except OSError as e:
            raise ConfigurationError(
                "Could not publish the default download script in "
                f"{self._publisher.session_dir}: {e}"
            ) from e

        await self._verifier.execute(url)
        self._registry.put(digest, url)
        log.info("default_download_script_ready", url=url, bootstrap=str(bootstrap))
        return url
