"""Validated configuration of a linkgate server.

Every section is its own model; ``AppConfig`` is the final, merged result
of defaults, YAML, environment and CLI (see ``load.py``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["memory", "diskcache", "redis"]
Scheme = Literal["http", "https"]


def _as_path(value: Any) -> Path:
    # Only expands "~"; never touches the filesystem.
    if isinstance(value, (str, Path)):
        return Path(value).expanduser()
    raise TypeError(f"Expected a path, got {type(value).__name__}")


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


class HttpConfig(BaseModel):
    """Outbound client used for challenge requests."""

    timeout_seconds: float = Field(default=30.0, description="Client-wide timeout.")
    follow_redirects: bool = Field(
        default=True,
        description="A script URL may redirect before answering the challenge.",
    )
    user_agent: str = Field(default="linkgate/0.1.0")

    @field_validator("timeout_seconds")
    @classmethod
    def _check_timeout(cls, v: float) -> float:
        return _positive("http.timeout_seconds", v)


class LoggingConfig(BaseModel):
    level: LogLevel = "INFO"
    format: Optional[LogFormat] = Field(
        default=None,
        description="console or json; derived from the environment when unset.",
    )


class CacheConfig(BaseModel):
    """Verification state backend.

    ``memory`` only works with a single worker process: the worker that
    sends a challenge must be the one that receives it.
    """

    backend: CacheBackendName = "memory"
    directory: Path = Field(
        default=Path("./.cache/linkgate"),
        validation_alias=AliasChoices("directory", "dir"),
        description="diskcache directory (backend=diskcache).",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL (backend=redis).",
    )
    namespace: str = Field(
        default="linkgate",
        description="Key prefix, lets several deployments share one backend.",
    )
    max_concurrent: int = Field(default=10, ge=1)

    @field_validator("directory", mode="before")
    @classmethod
    def _check_directory(cls, v: Any) -> Path:
        return _as_path(v)


class DownloadConfig(BaseModel):
    """Where launchers are published and how they are reached."""

    document_root: Path = Field(
        default=Path("./public"),
        description="Directory served by the document-root dispatcher.",
    )
    session_dir: Optional[Path] = Field(
        default=None,
        description="Launcher directory, <document_root>/linkgate when unset.",
    )
    server_name: Optional[str] = Field(
        default=None,
        description="Public host name of default script URLs.",
    )
    scheme: Scheme = "https"
    bootstrap_path: Optional[Path] = Field(
        default=None,
        description="Explicit bootstrap file; disables candidate discovery.",
    )
    media_dir: Path = Field(default=Path("./media"))
    challenge_ttl_seconds: int = Field(
        default=60,
        description="Lifetime of pending challenges and responses.",
    )
    challenge_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout of one outbound challenge request.",
    )

    @field_validator("document_root", "media_dir", mode="before")
    @classmethod
    def _check_paths(cls, v: Any) -> Path:
        return _as_path(v)

    @field_validator("session_dir", "bootstrap_path", mode="before")
    @classmethod
    def _check_optional_paths(cls, v: Any) -> Optional[Path]:
        return None if v is None else _as_path(v)

    @field_validator("challenge_ttl_seconds", "challenge_timeout_seconds")
    @classmethod
    def _check_challenge_limits(cls, v: float, info: ValidationInfo) -> float:
        return _positive(str(info.field_name), v)

    @model_validator(mode="after")
    def _default_session_dir(self) -> "DownloadConfig":
        if self.session_dir is None:
            self.session_dir = self.document_root / "linkgate"
        return self


class AppConfig(BaseModel):
    """Final configuration (defaults < YAML < env < CLI, merged in load.py)."""

    app_name: str = "linkgate"
    environment: Environment = Field(
        default="dev",
        description="dev/test log to the console, prod logs JSON by default.",
    )
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)

    @model_validator(mode="after")
    def _default_log_format(self) -> "AppConfig":
        if self.logging.format is None:
            self.logging.format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Dump in the shape of config.yaml."""
        return self.model_dump(mode="json", by_alias=False)


class EnvOverrides(BaseSettings):
    """``LINKGATE_*`` environment variables, all optional and flat.

    Examples: ``LINKGATE_LOG_LEVEL``, ``LINKGATE_CACHE_BACKEND``,
    ``LINKGATE_DOCUMENT_ROOT``, ``LINKGATE_SERVER_NAME``.  load.py maps
    each flat name onto its section.
    """

    model_config = SettingsConfigDict(
        env_prefix="LINKGATE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None

    document_root: Optional[Path] = None
    session_dir: Optional[Path] = None
    server_name: Optional[str] = None
    scheme: Optional[Scheme] = None
    bootstrap_path: Optional[Path] = None
    media_dir: Optional[Path] = None

    def provided(self) -> dict[str, Any]:
        """Only the variables that are actually set."""
        return self.model_dump(exclude_none=True)
