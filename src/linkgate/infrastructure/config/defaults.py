"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "linkgate",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "linkgate/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "backend": "memory",
        "dir": "./.cache/linkgate",
        "namespace": "linkgate",
    },
    "download": {
        "document_root": "./public",
        "session_dir": None,  # Derived from document_root in schema.py
        "server_name": None,
        "scheme": "https",
        "media_dir": "./media",
        "challenge_ttl_seconds": 60,
        "challenge_timeout_seconds": 10.0,
    },
}
