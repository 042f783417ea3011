"""Document-root dispatcher: serves published launchers at their URL."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from linkgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["download"])


@router.get("/{script_path:path}")
async def serve_launcher(script_path: str, request: Request) -> Response:
    """Run the launcher published at ``script_path``.

    The launcher hands the request to its download server handler, which
    answers challenge pings, streams files or prints the banner.

    Raises:
        HTTPException(404): No launcher at this path.
        HTTPException(500): The launcher could not be executed.
    """
    state = cast(AppState, request.app.state)

    try:
        handler = await state.launcher_loader.load(script_path)
    except Exception as e:
        log.error("launcher_load_failed", path=script_path, error=str(e))
        raise HTTPException(
            status_code=500,
            detail="Failed to load download script",
        ) from e

    if handler is None:
        raise HTTPException(status_code=404, detail="Not Found")

    return await handler.handle(request)
