"""
Structured logging configuration for SupportDesk.

Configures structlog to work alongside stdlib logging so that both
`logging.getLogger()` and `structlog.get_logger()` produce consistent,
structured JSON output in production and human-readable output in dev.

Usage:
    from supportdesk.lib.logging import setup_logging

    setup_logging()  # Call once at application startup
"""

import hashlib
import logging
import os
import sys

import structlog


def setup_logging() -> None:
    """
    Configure structlog and stdlib logging for the application.

    In development (SUPPORTDESK_DEV_MODE=1): human-readable console output.
    In production: JSON-formatted structured logs.
    """
    dev_mode = os.environ.get("SUPPORTDESK_DEV_MODE") == "1"
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if dev_mode:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Quiet noisy third-party loggers
    for noisy_logger in ("httpx", "httpcore", "urllib3", "sqlalchemy.engine", "google"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def hash_id(identifier: str | None) -> str | None:
    """Return a 12-char SHA-256 prefix for log-safe conversation identification."""
    if identifier is None:
        return None
    return hashlib.sha256(identifier.encode()).hexdigest()[:12]
