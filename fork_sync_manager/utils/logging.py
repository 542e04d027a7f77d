"""Logging setup for the command line entry point."""

import logging

import structlog


def configure_logging(debug: bool = False) -> None:
    """Configure structlog for console output.

    Events are rendered as key-value pairs and carry any context bound with
    ``structlog.contextvars`` (e.g. the repository currently being processed).
    """
    level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
