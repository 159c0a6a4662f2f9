"""Logging utilities for backendctl.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to stderr or to a log file. Each
logger is self-contained and does not modify global structlog
configuration.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from backendctl.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, BACKENDCTL_DEBUG overrides to DEBUG level and
            BACKENDCTL_LOG_LEVEL overrides the given level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("BACKENDCTL_DEBUG", None):
        return logging.DEBUG

    if respect_env:
        level = getenv("BACKENDCTL_LOG_LEVEL", level)

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _create_logger(
    log_file_path: str = "",
    *,
    log_level: int = logging.INFO,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        log_file_path: Path to the log file. Empty writes to stderr.
        log_level: Minimum level that is emitted.
        log_format: Output format, either "json" or "text".
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count for rotation to be enabled.
        backup_count: Number of rotated log files to keep. Must be set with
            max_bytes for rotation to be enabled.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    raw_logger: object
    if not log_file_path:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()
    elif max_bytes is not None and backup_count is not None:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        stdlib_logger = logging.getLogger(f"backendctl.{log_path.stem}.{id(log_path)}")
        stdlib_logger.handlers.clear()
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(log_level)

        handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        handler.setLevel(log_level)
        # structlog renders the message; the handler only writes it
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)
        raw_logger = stdlib_logger
    else:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        raw_logger = structlog.WriteLoggerFactory(file=log_path.open("a"))()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
        ),
    )


def create_supervisor_logger(
    config: LoggingConfig | None = None,
    *,
    component: str = "supervisor",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger for the backend supervisor.

    The log level is determined by (in order of precedence):
    1. BACKENDCTL_DEBUG environment variable (if set, enables DEBUG level)
    2. BACKENDCTL_LOG_LEVEL environment variable
    3. The `level` of the given logging config
    4. Default: INFO

    Rotation is enabled for file logs (10 MiB, five backups).

    Args:
        config: Logging settings. Defaults are used when None.
        component: Component name bound to every log entry.

    Returns:
        A FilteringBoundLogger instance bound to the component name.
    """
    level = config.level.value if config is not None else "info"
    log_format = cast(
        "LogFormatType", config.format.value if config is not None else "json"
    )
    log_file = config.file if config is not None else ""

    logger = _create_logger(
        log_file,
        log_level=_log_level_from_string(level, respect_env=True),
        log_format=log_format,
        max_bytes=10 * 1024 * 1024 if log_file else None,
        backup_count=5 if log_file else None,
    )
    return logger.bind(component=component)
