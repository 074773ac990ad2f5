"""structlog configuration.

Module loggers are obtained with ``structlog.get_logger()`` and log
event-style messages with keyword context. The request id bound by the
middleware is merged in from ``structlog.contextvars``.
"""

import logging
import sys

import structlog

from catalog_service.infrastructure.config import settings


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure stdlib logging and structlog processors.

    Args:
        level: Log level name; defaults to ``settings.log_level``.
        json_output: Render JSON lines instead of console output;
            defaults to ``settings.log_json``.
    """
    level = (level or settings.log_level).upper()
    json_output = settings.log_json if json_output is None else json_output

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
