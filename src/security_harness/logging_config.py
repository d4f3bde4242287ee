"""Structured logging configuration for the security test harness.

Harness events are emitted as structured key/value records so they can be
correlated with the test run that produced them. JSON is the default
output; set ``LOG_FORMAT=console`` for human-readable lines while
debugging a test locally.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def configure_logging() -> None:
    """Configure structured logging for test runs.

    Sets up:
    - JSON output (or console output when LOG_FORMAT=console)
    - ISO timestamp format
    - Log level filtering (INFO by default, configurable via LOG_LEVEL env var)
    - Exception formatting

    The pytest plugin calls this once per session when
    ``security_harness_configure_logging`` is enabled.
    """
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_format = os.environ.get("LOG_FORMAT", "json").lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level, logging.INFO),
    )

    renderer: Any
    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Structured logger

    Example:
        logger = get_logger(__name__)
        logger.info("mock_server_started", port=50123)
    """
    return structlog.get_logger(name)


def mask_token(token: str, visible_chars: int = 8) -> str:
    """Mask a token for safe logging.

    Args:
        token: Token string to mask
        visible_chars: Number of characters to show at start/end

    Returns:
        Masked token string (e.g., "eyJhbGci...xyz123ab")
    """
    if len(token) <= visible_chars * 2:
        return "***"
    return f"{token[:visible_chars]}...{token[-visible_chars:]}"
