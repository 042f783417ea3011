"""Merge configuration layers: defaults < YAML < environment < CLI.

YAML files and CLI overrides may use either the sectioned shape of
config.yaml (``download: {server_name: ...}``) or the flat names of the
environment variables (``server_name: ...``).  Nothing here creates files
or directories.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS = ("http", "logging", "cache", "download")
_TOP_LEVEL = ("app_name", "environment")

_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "cache_backend": ("cache", "backend"),
    "cache_dir": ("cache", "dir"),
    "cache_redis_url": ("cache", "redis_url"),
}
_FLAT_KEYS.update(
    (key, ("download", key))
    for key in (
        "document_root",
        "session_dir",
        "server_name",
        "scheme",
        "bootstrap_path",
        "media_dir",
    )
)


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape, dropping unknown keys."""
    out: dict[str, Any] = {k: layer[k] for k in _TOP_LEVEL if k in layer}
    for section in _SECTIONS:
        if isinstance(layer.get(section), Mapping):
            out[section] = dict(layer[section])
    for flat, (section, key) in _FLAT_KEYS.items():
        if flat in layer:
            out.setdefault(section, {})[key] = layer[flat]
    cache = out.get("cache")
    if cache and "dir" in cache:
        # "dir" is the short spelling of cache.directory
        cache["directory"] = cache.pop("dir")
    return out


def _yaml_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(data)!r}")
    return data


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Build the validated AppConfig.

    Raises:
        FileNotFoundError: ``config_path`` or ``dotenv_path`` does not exist.
        ValueError: The YAML is not a mapping.
        pydantic.ValidationError: The merged values are invalid.
    """
    # A .env file feeds the environment layer and never overrides real env vars.
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_yaml_layer(config_path))
    layers.append(EnvOverrides().provided())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
