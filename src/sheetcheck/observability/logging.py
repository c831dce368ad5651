"""
Configures structured logging for the application using structlog.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Dict, List

import structlog

if TYPE_CHECKING:
    from sheetcheck.config.config import MonitoringConfig


def add_run_id(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    """Adds the batch run_id to the log record if it's bound in the context."""
    from structlog.contextvars import get_contextvars

    ctx = get_contextvars()
    if "run_id" in ctx:
        event_dict["run_id"] = ctx["run_id"]
    return event_dict


def configure_logging(config: MonitoringConfig) -> None:
    """
    Sets up structlog to handle all logging for the application.

    Console output goes to stderr so that per-URL outcome lines printed on
    stdout stay readable.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_run_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    log_renderer: Any
    if config.log_file:
        log_renderer = structlog.processors.JSONRenderer()
        handler: logging.Handler = logging.FileHandler(config.log_file)
    else:
        log_renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=log_renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(config.log_level.upper())

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("sheetcheck.logging")
    logger.debug("Logging configured", level=config.log_level, output=config.log_file or "console")
