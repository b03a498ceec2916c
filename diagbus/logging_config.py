"""Structured logging configuration for diagbus.

Uses structlog for structured, context-rich logging with
support for both console and JSON output formats.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from diagbus.container import AppConfig

# Parent of the bus and schema loggers; emission diagnostics are logged here.
EVENTS_LOGGER = "diagbus.events"


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Path | None = None,
    colors: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to output JSON format
        log_file: Optional file to log to
        colors: Whether to use colors in console output
    """
    stream: TextIO = sys.stderr
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = open(log_file, "a", encoding="utf-8")  # noqa: SIM115

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)


def configure_from_config(config: AppConfig) -> None:
    """Configure logging from the application config.

    The bus logs one line per emitted event, so ``diagbus.events`` gets its
    own level (``config.events_log_level``) on top of the global one.

    Args:
        config: Loaded application configuration
    """
    log_file = None
    if config.log_dir is not None:
        log_file = config.log_dir / "diagbus.log"

    configure_logging(
        level=config.log_level,
        json_output=config.json_logs,
        log_file=log_file,
        colors=not config.json_logs,
    )

    events_logger = logging.getLogger(EVENTS_LOGGER)
    if config.events_log_level:
        events_logger.setLevel(
            getattr(logging, config.events_log_level.upper(), logging.NOTSET)
        )
    else:
        events_logger.setLevel(logging.NOTSET)


# Usage example:
# from diagbus.logging_config import get_logger
#
# logger = get_logger(__name__)
#
# logger.info("diagnostic_event_emitted",
#             kind="webhook.received",
#             sequence=1,
#             state_id="k3x9qa",
#             listeners=2)
