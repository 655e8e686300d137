"""Logging for the ordering service.

Module loggers come from ``structlog.get_logger``. ``configure_logging``
routes structlog and stdlib records (protean, uvicorn, httpx) through one
``ProcessorFormatter`` so both share a renderer: JSON lines in production
and staging, rich console output elsewhere.
"""

import logging
import logging.handlers
import os
import sys
from typing import Any

import structlog

_LEVELS = {"production": "INFO", "staging": "INFO", "development": "DEBUG", "test": "WARNING"}
_QUIET = ("protean", "httpx", "httpcore", "asyncio")


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def _rendering(environment: str) -> list:
    if environment in ("production", "staging"):
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4)
        )
    ]


def configure_logging(log_file: str | None = None) -> None:
    """Install handlers on the root logger and configure structlog.

    ``log_file`` (or ``LOG_FILE``) adds a size-rotated file beside stdout.
    """
    environment = _environment()
    level = os.getenv("LOG_LEVEL", _LEVELS.get(environment, "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *_rendering(environment)],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(
            logging.handlers.RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
        )
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_context(**kwargs: Any) -> None:
    """Bind values onto every later log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
