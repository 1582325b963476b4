"""Logging setup from LoggingConfig.

Handlers go on the ``ffrun`` package logger, which stops propagating, so
configuring ffrun never touches handlers an embedding application has put
on the root logger.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from ffrun.logging.context import RunContextFilter
from ffrun.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from ffrun.config.models import LoggingConfig

PACKAGE_LOGGER = "ffrun"

# run_tag is "[R3f2a9c01 pid=4242] " for records of a run, empty otherwise
TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(run_tag)s%(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _file_handler(config: LoggingConfig) -> logging.Handler:
    """Open the rotating log file, creating its directory.

    Raises:
        OSError: If the file cannot be opened.
    """
    path = Path(config.file).expanduser()  # type: ignore[arg-type]
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )


def configure_logging(
    config: LoggingConfig, logger_name: str = PACKAGE_LOGGER
) -> logging.Logger:
    """Install handlers for ffrun's loggers.

    A rotating file handler is used when ``config.file`` is set, and a
    stderr handler when there is no file, the file cannot be opened, or
    ``config.include_stderr`` is set. Handlers from an earlier call are
    closed and replaced.

    Returns:
        The configured logger.
    """
    level = logging.getLevelName(config.level.upper())
    target = logging.getLogger(logger_name)
    for handler in target.handlers[:]:
        target.removeHandler(handler)
        handler.close()
    target.setLevel(level)
    target.propagate = False

    handlers: list[logging.Handler] = []
    file_error: OSError | None = None
    if config.file:
        try:
            handlers.append(_file_handler(config))
        except OSError as e:
            file_error = e
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = build_formatter(config.format)
    context_filter = RunContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        target.addHandler(handler)

    if file_error is not None:
        target.warning("Could not open log file %s: %s", config.file, file_error)
    return target
