"""Logging utilities for repostate.

This module provides a standalone structlog logger factory that writes
JSON-formatted or text-formatted logs to a file or to stderr. Each logger
is self-contained and does not modify global structlog configuration.
"""

import logging
import sys
from collections.abc import Mapping
from os import getenv
from pathlib import Path
from typing import Literal, cast

import structlog
from structlog.typing import FilteringBoundLogger

from repostate.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _log_level_from_string(
    level: str, *, environ: Mapping[str, str] | None = None
) -> int:
    """Convert a log level string to a logging level integer.

    REPOSTATE_DEBUG overrides the requested level to DEBUG.

    Args:
        level: Log level string (debug, info, warning, error).
        environ: Environment mapping to consult. Defaults to os.environ.

    Returns:
        The logging level as an integer.
    """
    debug = environ.get("REPOSTATE_DEBUG") if environ is not None else getenv(
        "REPOSTATE_DEBUG"
    )
    if debug:
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    environ: Mapping[str, str] | None = None,
) -> FilteringBoundLogger:
    """Create a standalone structlog logger.

    Args:
        level: Log level threshold (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to the log file (opened in append mode, parents
            created). Empty writes to stderr.
        environ: Environment mapping for the REPOSTATE_DEBUG override.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = _log_level_from_string(level, environ=environ)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))
    else:
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )


def create_logger_from_config(
    config: LoggingConfig, *, environ: Mapping[str, str] | None = None
) -> FilteringBoundLogger:
    """Create a logger from the logging section of Settings.

    Args:
        config: Logging configuration.
        environ: Environment mapping for the REPOSTATE_DEBUG override.

    Returns:
        A FilteringBoundLogger instance.
    """
    return create_logger(
        level=config.level.value,
        log_format=config.format.value,
        log_file=config.file,
        environ=environ,
    )
