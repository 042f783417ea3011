"""structlog + stdlib logging for the linkgate server.

Every record (ours, uvicorn's, httpx's) is rendered by one structlog
``ProcessorFormatter`` and written by a background ``QueueListener``
thread: ERROR and above to stderr, the rest to stdout.
"""

from __future__ import annotations

import atexit
import copy
import logging
import logging.config
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Optional

import structlog

from linkgate.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers pinned to WARNING whatever the configured level is.
QUIET_LOGGERS = ("httpx", "httpcore")

# Event keys whose values must never reach a log sink.
REDACTED_KEYS = frozenset({"nonce", "expected_nonce"})


def _strip_uvicorn_color(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("color_message", None)
    return event_dict


def _redact(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _stamp_foreign_record(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Use the creation time of stdlib records, not the time the listener
    thread gets around to formatting them."""
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def make_formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.typing.Processor
    if config.logging.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            _strip_uvicorn_color,
            structlog.contextvars.merge_contextvars,
            _stamp_foreign_record,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """dictConfig for ``uvicorn.run(log_config=...)``.

    uvicorn's own loggers follow ``config.logging.level``; the loggers in
    ``QUIET_LOGGERS`` stay at WARNING.
    """
    level = config.logging.level

    def stream(target: str) -> dict[str, Any]:
        return {
            "class": "logging.StreamHandler",
            "stream": f"ext://sys.{target}",
            "formatter": "structlog",
        }

    loggers: dict[str, Any] = {
        "uvicorn": {"handlers": ["default"], "level": level, "propagate": False},
        "uvicorn.error": {"level": level},
        "uvicorn.access": {"handlers": ["access"], "level": level, "propagate": False},
    }
    loggers.update({name: {"level": "WARNING"} for name in QUIET_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"structlog": {"()": lambda: make_formatter(config)}},
        "handlers": {"default": stream("stderr"), "access": stream("stdout")},
        "loggers": loggers,
        "root": {"handlers": ["default"], "level": level},
    }


class _DictPreservingQueueHandler(QueueHandler):
    # QueueHandler.prepare() would flatten structlog's dict msg to a string.
    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return copy.copy(record)


class _LogPump:
    """Owns the single QueueListener of the process."""

    def __init__(self) -> None:
        self._listener: Optional[QueueListener] = None
        atexit.register(self.stop)

    def stop(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.stop()

    def start(self, config: AppConfig) -> None:
        self.stop()
        formatter = make_formatter(config)

        to_stdout = logging.StreamHandler(stream=sys.stdout)
        to_stdout.setFormatter(formatter)
        to_stdout.addFilter(lambda record: record.levelno < logging.ERROR)

        to_stderr = logging.StreamHandler(stream=sys.stderr)
        to_stderr.setFormatter(formatter)
        to_stderr.setLevel(logging.ERROR)

        records: queue.Queue[logging.LogRecord] = queue.Queue()
        root = logging.getLogger()
        root.handlers[:] = [_DictPreservingQueueHandler(records)]
        root.setLevel(config.logging.level)

        # Everything propagates to the root queue handler.
        for name in list(logging.root.manager.loggerDict):
            named = logging.getLogger(name)
            named.handlers.clear()
            named.propagate = True

        self._listener = QueueListener(
            records, to_stdout, to_stderr, respect_handler_level=True
        )
        self._listener.start()


_PUMP = _LogPump()


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Configure structlog and stdlib logging for the whole process.

    Returns the dictConfig handed to uvicorn; emission itself goes through
    the queue listener.
    """
    structlog.configure(
        processors=[
            _strip_uvicorn_color,
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _redact,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(
        app=config.app_name, environment=config.environment
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)
    _PUMP.start(config)

    log.info(
        "logging_configured",
        log_format=config.logging.format,
        log_level=config.logging.level,
    )
    return cfg
