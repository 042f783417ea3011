"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from linkgate.infrastructure.config import AppConfig
from linkgate.interfaces.app_state import AppState
from linkgate.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


async def _log_request(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    # Path only: query strings carry file ids and challenge nonces.
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        log.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
            client_host=request.client.host if request.client else None,
        )


def create_app(config: AppConfig) -> FastAPI:
    """Wire routes and middleware; resources are created in lifespan().

    Route order matters: the document-root dispatcher matches every path,
    so it is registered after the API routes.
    """
    app = FastAPI(
        title="linkgate",
        description="Self-verifying download link gateway",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state = AppState()
    app.state.config = config

    from linkgate.interfaces.api.download.router import router as download_router
    from linkgate.interfaces.api.links.router import router as links_router

    app.include_router(links_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | bool]:
        """200 while the process runs; ``serving`` once startup finished."""
        context = getattr(app.state, "execution_context", None)
        return {
            "status": "ok",
            "serving": bool(context and context.is_web_context()),
        }

    app.include_router(download_router)
    app.middleware("http")(_log_request)
    return app
