"""``linkgate`` command: load config once, configure logging, run uvicorn."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from linkgate.infrastructure.config import load_config
from linkgate.infrastructure.logging.setup import configure_logging
from linkgate.interfaces.app import create_app

log = structlog.get_logger(__name__)

# argparse dest -> flat config key understood by load_config()
_OVERRIDES = {
    "document_root": "document_root",
    "server_name": "server_name",
    "scheme": "scheme",
    "bootstrap": "bootstrap_path",
    "media_dir": "media_dir",
    "cache_backend": "cache_backend",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkgate",
        description="Issue self-verifying download links and serve the files.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", help="Bind host (default: $HOST or 0.0.0.0).")
    server.add_argument(
        "--port", type=int, help="Bind port (default: $PORT or 8080)."
    )

    sources = parser.add_argument_group("configuration sources")
    sources.add_argument("--config", type=Path, help="YAML config file.")
    sources.add_argument("--dotenv", type=Path, help=".env file.")

    download = parser.add_argument_group("download scripts")
    download.add_argument(
        "--document-root",
        help="Public directory; default launchers are published below it.",
    )
    download.add_argument(
        "--server-name", help="Public host name of default script URLs."
    )
    download.add_argument("--scheme", choices=["http", "https"])
    download.add_argument(
        "--bootstrap", help="Bootstrap file run by launchers (skips discovery)."
    )
    download.add_argument("--media-dir", help="Root of the media library.")
    download.add_argument(
        "--cache-backend",
        choices=["memory", "diskcache", "redis"],
        help="Verification state backend.",
    )

    logs = parser.add_argument_group("logging")
    logs.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    logs.add_argument("--log-format", choices=["json", "console"])
    return parser


def _cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    return {
        key: getattr(args, dest)
        for dest, key in _OVERRIDES.items()
        if getattr(args, dest) is not None
    }


def start(argv: Iterable[str] | None = None) -> None:
    """Process entrypoint.

    Runs a single worker: with the ``memory`` backend the challenge and its
    answer have to meet in the same process.
    """
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=_cli_overrides(args),
    )
    log_config = configure_logging(config)

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = args.port or int(os.getenv("PORT", "8080"))
    log.info("linkgate_starting", host=host, port=port)

    # access_log=False: uvicorn would log query strings (file ids, nonces).
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
        access_log=False,
    )


if __name__ == "__main__":
    raise SystemExit(start())
