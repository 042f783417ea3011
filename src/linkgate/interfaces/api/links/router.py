"""Link endpoint: issue download links for media of the local library."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from linkgate.domain.entities import (
    ConfigurationError,
    MediaNotFoundError,
    PathContainmentError,
    UnreachableScriptError,
)
from linkgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["links"])


@router.get("/links")
async def issue_download_link(
    request: Request,
    media: str = Query(..., description="File id in the media library."),
    script_url: str | None = Query(
        default=None,
        description="Download script URL; the default launcher is used if omitted.",
    ),
) -> dict[str, str]:
    """Issue a download link for ``media``.

    Returns:
        JSON with the shareable ``url``.

    Raises:
        HTTPException(404): Unknown media.
        HTTPException(502): The script URL failed verification.
        HTTPException(500): No default script could be published.
    """
    state = cast(AppState, request.app.state)

    log.info("link_request", media=media, script_url=script_url)

    try:
        url = await state.download_link_uc.execute(media, script_url)
    except MediaNotFoundError as e:
        log.warning("link_media_not_found", media=media)
        raise HTTPException(status_code=404, detail=str(e)) from e
    except UnreachableScriptError as e:
        log.warning("link_script_unreachable", url=e.url)
        raise HTTPException(status_code=502, detail=str(e)) from e
    except (ConfigurationError, PathContainmentError) as e:
        log.error("link_default_script_unavailable", error=str(e))
        raise HTTPException(status_code=500, detail=str(e)) from e

    return {"url": url}
