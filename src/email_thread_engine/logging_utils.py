"""Structured logging setup."""

from __future__ import annotations

import logging
import sys

import structlog

from email_thread_engine.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog to filter below the configured log level.

    Log lines go to stderr so command output on stdout stays machine-readable.

    Args:
        settings: Application settings providing ``log_level``.
    """

    level = logging.getLevelName(settings.log_level)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
