from .download import (
    ChallengeRequest,
    ConfigurationError,
    DownloadLink,
    DownloadLinkError,
    FileRequest,
    MediaFile,
    MediaMessage,
    MediaNotFoundError,
    MediaReference,
    PathContainmentError,
    PublishedScript,
    UnreachableScriptError,
    VerificationRecord,
)

__all__ = [
    "ChallengeRequest",
    "ConfigurationError",
    "DownloadLink",
    "DownloadLinkError",
    "FileRequest",
    "MediaFile",
    "MediaMessage",
    "MediaNotFoundError",
    "MediaReference",
    "PathContainmentError",
    "PublishedScript",
    "UnreachableScriptError",
    "VerificationRecord",
]
