"""Domain entities for self-verifying download links.

Pure value objects and error types, no framework dependencies, no I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union
from urllib.parse import urlencode

# Query parameter names shared by the link issuer, the verifier and the
# download server handler.
CHALLENGE_URL_PARAM = "c"
CHALLENGE_NONCE_PARAM = "i"
FILE_ID_PARAM = "f"
FILE_NAME_PARAM = "n"
FILE_MIME_PARAM = "m"
FILE_SIZE_PARAM = "s"


@dataclass(frozen=True)
class MediaFile:
    """A resolved media object: everything needed to stream it."""

    file_id: str
    name: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class MediaMessage:
    """A message carrying a media attachment (unwrapped before issuing)."""

    media: MediaFile
    text: str = ""


MediaReference = Union[MediaFile, MediaMessage, str, Mapping[str, Any]]


@dataclass(frozen=True)
class VerificationRecord:
    """State of one challenge/response round for a script URL."""

    script_url: str
    nonce: int
    verified: bool = False


@dataclass(frozen=True)
class PublishedScript:
    """A launcher written under the document root for one bootstrap file."""

    bootstrap_path: Path
    script_path: Path
    content_hash: str


@dataclass(frozen=True)
class DownloadLink:
    """Shareable link: a verified script URL plus transfer attributes."""

    script_url: str
    file_id: str
    name: str
    mime: str
    size: int

    def query_params(self) -> dict[str, str]:
        return {
            FILE_ID_PARAM: self.file_id,
            FILE_NAME_PARAM: self.name,
            FILE_MIME_PARAM: self.mime,
            FILE_SIZE_PARAM: str(self.size),
        }

    def to_url(self) -> str:
        separator = "&" if "?" in self.script_url else "?"
        return f"{self.script_url}{separator}{urlencode(self.query_params())}"


@dataclass(frozen=True)
class ChallengeRequest:
    """Inbound reachability ping: echo ``nonce`` for ``url``."""

    url: str
    nonce: int


@dataclass(frozen=True)
class FileRequest:
    """Inbound request to stream a file to the browser."""

    file_id: str
    name: str
    mime: str
    size: int | None


class DownloadLinkError(Exception):
    """Base error for download link issuing and verification."""


class ConfigurationError(DownloadLinkError):
    """The environment cannot produce a default download script."""

    def __init__(self, message: str, *, attempted: list[str] | None = None) -> None:
        super().__init__(message)
        self.attempted = attempted or []


class UnreachableScriptError(DownloadLinkError):
    """The script URL did not answer the challenge with the right nonce."""

    def __init__(self, url: str, reason: str | None = None) -> None:
        message = f"{url} is not a valid download script!"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.url = url


class PathContainmentError(DownloadLinkError):
    """A published launcher resolved outside of the public document root."""

    def __init__(self, path: Path, root: Path) -> None:
        super().__init__(
            "Process runner is not within readable document root! "
            f"({path} is not below {root})"
        )
        self.path = path
        self.root = root


class MediaNotFoundError(DownloadLinkError):
    """The media reference does not name a known file."""
