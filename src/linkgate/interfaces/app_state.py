"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from linkgate.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from linkgate.application.use_cases import (
        DefaultScriptUseCase,
        DownloadLinkUseCase,
        ScriptVerificationUseCase,
    )
    from linkgate.domain.ports import (
        CachePort,
        MediaResolverPort,
        MediaServerPort,
        ScriptUrlRegistryPort,
        ScriptVerificationStorePort,
    )
    from linkgate.infrastructure.execution_context import ServerExecutionContext
    from linkgate.infrastructure.publishing.loader import LauncherLoader


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    execution_context: ServerExecutionContext

    # Shared registries
    verification_store: ScriptVerificationStorePort
    script_url_registry: ScriptUrlRegistryPort

    # Media layer
    media_resolver: MediaResolverPort
    media_server: MediaServerPort

    # Document-root dispatch
    launcher_loader: LauncherLoader

    # Application Services
    script_verification_uc: ScriptVerificationUseCase
    default_script_uc: DefaultScriptUseCase
    download_link_uc: DownloadLinkUseCase
