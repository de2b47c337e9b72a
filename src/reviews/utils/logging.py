"""Logging for the Reviews domain.

structlog renders through the standard library root logger, which writes to
stdout and to a rotating ``reviews.log`` under ``LOG_DIR``. PROTEAN_ENV picks
both the level and the renderer: JSON lines in production, the colored
console renderer everywhere else.

Store and recomputer log lines carry the operation context bound with
``bound_context`` (review_id, product_id, ...), and HTTP requests add
request_id and user_id through ``add_context``.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LEVELS = {
    "production": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

LOG_FILE = "reviews.log"
MAX_LOG_BYTES = 10 * 1024 * 1024


def current_env() -> str:
    return os.getenv("PROTEAN_ENV", "development").lower()


def get_log_level() -> str:
    """LOG_LEVEL wins; otherwise the level follows PROTEAN_ENV."""
    return os.getenv("LOG_LEVEL", LEVELS.get(current_env(), "INFO"))


def _file_handler(level: str) -> logging.Handler:
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / LOG_FILE,
        maxBytes=MAX_LOG_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(level: str) -> None:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [console_handler, _file_handler(level)]


def _renderer(env: str):
    if env == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def setup_structlog(env: str) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # Worker threads log background recomputations
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.THREAD_NAME,
                ]
            ),
            _renderer(env),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging() -> None:
    setup_stdlib_logging(get_log_level())
    setup_structlog(current_env())


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind variables to every later log line in this context (one HTTP request)."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def bound_context(**kwargs: Any):
    """Bind variables for the duration of a ``with`` block only."""
    return structlog.contextvars.bound_contextvars(**kwargs)
