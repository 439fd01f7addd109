"""Structured logging for the engine.

Nodes log through :func:`get_logger`, which returns a structlog
bound logger tagged with the component that is emitting the event::

    log = get_logger("join")
    log.info("join.inferred_keys", keys=["carrier"])

Unless the application already configured structlog itself,
logging is configured the first time a logger is requested,
routing events through the standard library ``tidypyground`` logger
at the level set in :class:`tidypyground.config.EngineSettings`.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from ..config import get_settings

LOGGER_NAME = "tidypyground"


def setup_logging() -> None:
    """Configure structured logging for the engine.

    Can be invoked explicitly to reconfigure logging after
    the settings changed.
    """
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    # Only the engine logger is touched, the root logger belongs to the application.
    engine_logger = logging.getLogger(LOGGER_NAME)
    engine_logger.handlers.clear()
    engine_logger.addHandler(handler)
    engine_logger.setLevel(settings.log_level)
    engine_logger.propagate = False


def get_logger(component: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with optional component binding."""
    if not structlog.is_configured():
        setup_logging()
    logger = structlog.get_logger(LOGGER_NAME)
    if component:
        logger = logger.bind(component=component)
    return logger
