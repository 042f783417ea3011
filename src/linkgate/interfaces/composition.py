"""Composition root: build and tear down every resource of the service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from linkgate.application.use_cases import (
    DefaultScriptUseCase,
    DownloadLinkUseCase,
    ScriptVerificationUseCase,
)
from linkgate.infrastructure.cache import create_cache
from linkgate.infrastructure.execution_context import ServerExecutionContext
from linkgate.infrastructure.media.directory_library import DirectoryMediaLibrary
from linkgate.infrastructure.persistence.script_url_registry import ScriptUrlRegistry
from linkgate.infrastructure.persistence.verification_store import (
    CacheScriptVerificationStore,
)
from linkgate.infrastructure.publishing.launcher import (
    LauncherPublisher,
    default_bootstrap_candidates,
)
from linkgate.infrastructure.publishing.loader import LauncherLoader
from linkgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (backs the verification store)
        2. HTTP client (challenge requests)
        3. Shared registries
        4. Media library
        5. Use cases
        6. Document-root dispatch, then the context switches to "serving"
    """
    state = cast(AppState, app.state)
    config = state.config
    download = config.download

    # 1) Cache
    cache = create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        namespace=config.cache.namespace,
        max_concurrent=config.cache.max_concurrent,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)
    if config.cache.backend == "memory":
        log.info(
            "verification_state_process_local",
            hint="run a single worker or use the diskcache/redis backend",
        )

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http.timeout_seconds),
        headers={"User-Agent": config.http.user_agent},
        follow_redirects=config.http.follow_redirects,
    )
    log.info("http_client_initialized")

    # 3) Shared registries
    state.verification_store = CacheScriptVerificationStore(
        cache=state.cache,
        challenge_ttl_seconds=download.challenge_ttl_seconds,
    )
    state.script_url_registry = ScriptUrlRegistry()

    # 4) Media library
    library = DirectoryMediaLibrary(download.media_dir)
    state.media_resolver = library
    state.media_server = library
    log.info("media_library_initialized", root=str(download.media_dir))

    # 5) Use cases
    state.execution_context = ServerExecutionContext(
        document_root=download.document_root,
        server_name=download.server_name or "",
        scheme=download.scheme,
    )
    state.script_verification_uc = ScriptVerificationUseCase(
        store=state.verification_store,
        http_client=state.http_client,
        timeout_seconds=download.challenge_timeout_seconds,
    )
    state.default_script_uc = DefaultScriptUseCase(
        context=state.execution_context,
        publisher=LauncherPublisher(download.session_dir),
        verifier=state.script_verification_uc,
        registry=state.script_url_registry,
        bootstrap_candidates=default_bootstrap_candidates(),
        bootstrap_path=download.bootstrap_path,
    )
    state.download_link_uc = DownloadLinkUseCase(
        resolver=state.media_resolver,
        verifier=state.script_verification_uc,
        default_script=state.default_script_uc,
        session_dir=download.session_dir,
    )

    # 6) Document-root dispatch
    state.launcher_loader = LauncherLoader(download.document_root)
    state.execution_context.mark_serving()

    log.info(
        "app_startup_complete",
        document_root=str(download.document_root),
        server_name=download.server_name,
    )

    try:
        yield
    finally:
        state.execution_context.mark_serving(False)

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
