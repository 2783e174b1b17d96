"""
Structured logging configuration using structlog.

Application modules log through structlog. imapclient and uvicorn log through
the standard library, so the root logger is configured at the same level and
imapclient's protocol chatter is held back unless DEBUG is requested.
"""

import logging
import sys

import structlog

from .config import settings

# Loggers that trace every IMAP command line at DEBUG/INFO
_NOISY_LOGGERS = ("imapclient", "imapclient.imaplib")


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """
    Configure structlog and the standard library root logger.

    Sets up processors for:
    - Context variable merging (action, imap_host bound per request)
    - Log level and timestamp
    - Exception info rendering
    - JSON or console rendering based on settings
    """
    level = _resolve_level(settings.log_level)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.processors.JSONRenderer()
                if settings.log_json
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
