"""
Structured logging for the API and the Celery worker.

Development gets colored console output, every other environment gets one JSON
object per line. Request IDs bound by ``CorrelationIdMiddleware`` are merged
into each event, and credential-like keys are masked before rendering.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog
from structlog.types import Processor

from app.core.config import settings

REDACTED = "[REDACTED]"
SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "csrf_token", "cookie", "authorization", "secret"}
)


def redact_sensitive(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking values whose key names a credential."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def _log_level() -> int:
    level = logging.getLevelName((settings.LOG_LEVEL or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Configure structlog and the stdlib root logger it writes through."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=_log_level())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        redact_sensitive,
    ]

    if settings.is_development:
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger named after the calling module."""
    return structlog.get_logger(name)
