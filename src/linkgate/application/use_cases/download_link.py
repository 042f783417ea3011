"""Issue shareable download links on top of a verified script URL."""

from __future__ import annotations

from pathlib import Path

import structlog

from linkgate.application.use_cases.default_script import DefaultScriptUseCase
from linkgate.application.use_cases.script_verification import (
    ScriptVerificationUseCase,
)
from linkgate.domain.entities import (
    DownloadLink,
    DownloadLinkError,
    MediaFile,
    MediaMessage,
    MediaReference,
)
from linkgate.domain.ports import MediaResolverPort

log = structlog.get_logger(__name__)

_MANUAL_LAUNCHER_HINT = (
    "create a file under the document root containing: "
    "from linkgate.interfaces.api.download.server import download_server; "
    "app = download_server({session_dir!r}) "
    "and pass its URL as script_url"
)


class DownloadLinkUseCase:
    def __init__(
        self,
        *,
        resolver: MediaResolverPort,
        verifier: ScriptVerificationUseCase,
        default_script: DefaultScriptUseCase,
        session_dir: Path,
    ) -> None:
        self._resolver = resolver
        self._verifier = verifier
        self._default_script = default_script
        self._hint = _MANUAL_LAUNCHER_HINT.format(session_dir=str(session_dir))

    async def execute(self, media: MediaReference, script_url: str | None = None) -> str:
        if script_url is None:
            try:
                script_url = await self._default_script.execute()
            except DownloadLinkError as e:
                log.error(
                    "default_download_script_failed",
                    error=str(e),
                    hint=self._hint,
                )
                raise
        else:
            await self._verifier.execute(script_url)

        if isinstance(media, MediaMessage):
            media = media.media
        if not isinstance(media, MediaFile):
            media = await self._resolver.resolve(media)

        link = DownloadLink(
            script_url=script_url,
            file_id=media.file_id,
            name=media.name,
            mime=media.mime_type,
            size=media.size,
        )
        log.debug("download_link_issued", script_url=script_url, file_id=media.file_id)
        return link.to_url()
