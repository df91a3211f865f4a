"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog.
It provides structured logging with JSON formatting for production and
human-readable console output for development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion
- Redaction of secrets (OAuth state, authorization codes, tokens, passwords)
- JSON/Console output based on environment
- Logger caching
"""

import logging
from typing import Any, MutableMapping

import structlog
from structlog.types import Processor


REDACTED = "[REDACTED]"

# Keys whose values must never reach a log sink, whatever the caller passes.
SENSITIVE_KEYS = frozenset(
    {
        "state",
        "oauth_state",
        "received_state",
        "stored_state",
        "code",
        "authorization_code",
        "token",
        "access_token",
        "refresh_token",
        "recovery_token",
        "password",
        "new_password",
        "confirm_password",
        "redirect",
        "redirect_url",
        "redirect_to",
    }
)


def redact_sensitive_values(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor replacing secret values with a fixed marker.

    Only the value is replaced; the key stays so the event still records that
    the field was present.
    """
    for key in list(event_dict.keys()):
        if key.lower() in SENSITIVE_KEYS and event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    This function sets up structlog with:
    1. ISO format timestamps
    2. Log level inclusion
    3. Secret redaction
    4. JSON formatting for production, console formatting for development
    5. Standard library logger factory
    6. Logger caching for performance
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper(), logging.INFO))

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        redact_sensitive_values,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()

__all__ = ["configure_logging", "redact_sensitive_values", "logger", "SENSITIVE_KEYS"]
