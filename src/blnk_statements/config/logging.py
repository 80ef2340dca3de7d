"""Structured logging configuration for Blnk statements."""

import logging
import sys
from typing import Literal

import structlog

from blnk_statements.config.settings import get_settings


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
) -> None:
    """Configure structured logging for the application.

    Logs go to stderr so that stdout only carries the exported file path.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        format: Output format (json or console). Defaults to settings.
    """
    settings = get_settings()
    log_level = level or settings.log_level
    log_format = format or settings.log_format

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
    )

    processors: list[structlog.types.Processor] = [
        # Carries balance_id and format bound around a statement run
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
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
