"""Structured logging for chat_handoff.

This module provides a configured structlog logger with JSON output
for production and pretty console output for development. Credential
fields (api_key, token, ...) are redacted from every event.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

__all__ = [
    "configure_logging",
    "get_logger",
    "redact_secrets",
]

# Event keys whose values are credentials
SECRET_KEYS = frozenset({"api_key", "token", "bot_token", "authorization", "password"})

# Marker of a value already masked for logging
_MASK = "****"

# Third-party loggers kept at WARNING; their INFO lines repeat our own events
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "motor",
    "pymongo",
    "telegram",
    "apscheduler",
    "openai",
    "anthropic",
)


def redact_secrets(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor replacing credential values with "[redacted]".

    A value that already contains the mask is left alone, so providers can
    log `mask_key(...)` output for diagnostics.
    """
    for key in SECRET_KEYS.intersection(event_dict):
        value = event_dict[key]
        if value is None:
            continue
        text = str(value)
        if _MASK in text:
            continue
        event_dict[key] = "[redacted]"
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    json_output: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the application.

    Args:
        level: Logging level (default: INFO)
        json_output: If True, output JSON; if False, pretty console output
        add_timestamp: If True, add ISO timestamp to log entries
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (usually __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance
    """
    return structlog.get_logger(name)


# Convenience: configure with defaults on import if not already configured
_configured = False


def _ensure_configured() -> None:
    """Ensure logging is configured with defaults."""
    global _configured
    if not _configured:
        configure_logging()
        _configured = True


_ensure_configured()
