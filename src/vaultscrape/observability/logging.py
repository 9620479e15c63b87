"""
Configures structured logging for the application using structlog.
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Dict, List

import structlog

if TYPE_CHECKING:
    from vaultscrape.config.config import MonitoringConfig


def add_scrape_url(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    """Copies a ``scrape_url`` bound via contextvars onto every record."""
    from structlog.contextvars import get_contextvars

    ctx = get_contextvars()
    if "scrape_url" in ctx and "url" not in event_dict:
        event_dict["url"] = ctx["scrape_url"]
    return event_dict


def configure_logging(config: MonitoringConfig) -> None:
    """
    Route structlog and stdlib logging through one pipeline.

    JSON lines are emitted when a log file is configured or ``json_logs`` is
    set; otherwise a colored console renderer is used. Stdlib records from
    leaf modules are rendered by the same processors.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_scrape_url,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    renderer: Any
    if config.log_file or config.json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler: logging.Handler
    if config.log_file:
        handler = logging.FileHandler(config.log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
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

    logger = structlog.get_logger("vaultscrape.logging")
    logger.debug("Logging configured", level=config.log_level, output=config.log_file or "stderr")
