"""
Structured logging configuration.

Provides JSON-structured logging for production and readable text for development.
Account identifiers and challenge tokens pass through these logs, so every
production record runs through the redaction processor.
"""
import logging
import re
import sys
from typing import Any

import structlog

from authguard.core.config import settings

# Fields to redact completely
SENSITIVE_FIELDS = (
    "password",
    "secret",
    "token",
    "captcha",
    "session_id",
    "authorization",
    "cookie",
)

_EMAIL_RE = re.compile(r"^([^@\s])[^@\s]*@([^@\s]+\.[^@\s]+)$")


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    In production: JSON format with timestamps
    In development: Readable text format
    """
    log_level = getattr(logging, settings.LOG_LEVEL)

    if settings.DEBUG:
        configure_development_logging(log_level)
    else:
        configure_production_logging(log_level)


def configure_development_logging(level: int) -> None:
    """Configure logging for development (readable format)."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stdout,
        force=True,
    )

    # Silence noisy SQLAlchemy engine logs
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.pool').setLevel(logging.WARNING)


def configure_production_logging(level: int) -> None:
    """Configure logging for production (JSON format)."""
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_sensitive_data,
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route stdlib loggers (logging.getLogger(__name__)) through the same pipeline
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)


def redact_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Redact sensitive data from logs.

    Removes or masks:
    - Passwords and secrets
    - Challenge tokens
    - Session identifiers and cookies
    - Email addresses (masked, not removed, so incidents stay traceable)
    """
    redacted = event_dict.copy()

    for key, value in redacted.items():
        if isinstance(key, str):
            key_lower = key.lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
                redacted[key] = "***REDACTED***"
            elif isinstance(value, str):
                redacted[key] = redact_string(value)

    return redacted


def redact_string(value: str) -> str:
    """
    Redact sensitive patterns from strings.

    Patterns:
    - Email addresses
    - Long opaque tokens
    """
    match = _EMAIL_RE.match(value)
    if match:
        return f"{match.group(1)}***@{match.group(2)}"

    if len(value) > 20 and value.replace('_', '').replace('-', '').isalnum():
        return f"{value[:8]}...{value[-4:]}"

    return value


def mask_account(account: str) -> str:
    """Mask an account identifier for use inside log message text."""
    return redact_string(account)
