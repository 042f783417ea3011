"""Download server handler: the receiving side of a script URL.

Every request ends in exactly one branch:

* challenge (``c`` + ``i``): echo the nonce into the shared verification
  store and return an empty response, even if file parameters are present;
* file (``f`` [+ ``n``, ``m``, ``s``]): stream the file from the media layer;
* anything else: identification banner.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Mapping, Union, cast
from urllib.parse import quote

import structlog
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from linkgate.domain.entities import ChallengeRequest, FileRequest
from linkgate.domain.entities.download import (
    CHALLENGE_NONCE_PARAM,
    CHALLENGE_URL_PARAM,
    FILE_ID_PARAM,
    FILE_MIME_PARAM,
    FILE_NAME_PARAM,
    FILE_SIZE_PARAM,
)
from linkgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

try:
    _VERSION = version("linkgate")
except PackageNotFoundError:
    _VERSION = "0.0.0+local"

POWERED_BY = f"Powered by linkgate {_VERSION}"

DownloadRequest = Union[ChallengeRequest, FileRequest, None]


class InvalidChallenge(ValueError):
    """Challenge parameters present but the nonce is not an integer."""


def parse_download_request(params: Mapping[str, str]) -> DownloadRequest:
    """Classify inbound query parameters.

    Raises:
        InvalidChallenge: ``c`` and ``i`` are present but ``i`` is not an int.
    """
    if CHALLENGE_URL_PARAM in params and CHALLENGE_NONCE_PARAM in params:
        try:
            nonce = int(params[CHALLENGE_NONCE_PARAM])
        except ValueError as e:
            raise InvalidChallenge(params[CHALLENGE_NONCE_PARAM]) from e
        return ChallengeRequest(url=params[CHALLENGE_URL_PARAM], nonce=nonce)

    file_id = params.get(FILE_ID_PARAM)
    if not file_id:
        return None

    raw_size = params.get(FILE_SIZE_PARAM, "")
    return FileRequest(
        file_id=file_id,
        name=params.get(FILE_NAME_PARAM) or file_id.rsplit("/", 1)[-1],
        mime=params.get(FILE_MIME_PARAM) or "application/octet-stream",
        size=int(raw_size) if raw_size.isdecimal() else None,
    )


def _content_disposition(name: str) -> str:
    ascii_name = name.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(name)}"


class DownloadServer:
    """Handler installed at a launcher URL for one session directory."""

    def __init__(self, session_dir: str) -> None:
        self.session_dir = session_dir

    async def handle(self, request: Request) -> Response:
        state = cast(AppState, request.app.state)

        try:
            parsed = parse_download_request(request.query_params)
        except InvalidChallenge as e:
            log.warning("download_challenge_invalid_nonce", nonce=str(e))
            return Response(status_code=204)

        if isinstance(parsed, ChallengeRequest):
            matched = await state.verification_store.record_response(
                parsed.url, parsed.nonce
            )
            log.info("download_challenge_answered", url=parsed.url, matched=matched)
            return Response(status_code=204)

        if parsed is None:
            return PlainTextResponse(POWERED_BY)

        return await self._serve(state, parsed)

    async def _serve(self, state: AppState, req: FileRequest) -> Response:
        if not await state.media_server.exists(req.file_id):
            log.warning("download_file_not_found", file_id=req.file_id)
            return PlainTextResponse(f"File not found: {req.file_id}", status_code=404)

        headers = {"Content-Disposition": _content_disposition(req.name)}
        if req.size is not None:
            headers["Content-Length"] = str(req.size)

        log.info(
            "download_started",
            file_id=req.file_id,
            name=req.name,
            size=req.size,
            session=self.session_dir,
        )
        return StreamingResponse(
            state.media_server.stream(req.file_id),
            media_type=req.mime,
            headers=headers,
        )


def download_server(session_dir: str) -> DownloadServer:
    """Entry point called by generated launchers."""
    return DownloadServer(session_dir)
