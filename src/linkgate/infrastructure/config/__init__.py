from __future__ import annotations

from .load import load_config
from .schema import AppConfig, CacheConfig, DownloadConfig, EnvOverrides

__all__ = ["AppConfig", "CacheConfig", "DownloadConfig", "EnvOverrides", "load_config"]
