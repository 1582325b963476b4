"""Logging for ffrun.

Text or JSON output to stderr and/or a rotating file, with every record
of an ffmpeg run tagged by its run id and pid.
"""

from ffrun.logging.config import PACKAGE_LOGGER, configure_logging
from ffrun.logging.context import (
    RunContextFilter,
    RunInfo,
    current_run,
    get_run_id,
    run_context,
)
from ffrun.logging.handlers import JSONFormatter

__all__ = [
    "PACKAGE_LOGGER",
    "JSONFormatter",
    "RunContextFilter",
    "RunInfo",
    "configure_logging",
    "current_run",
    "get_run_id",
    "run_context",
]
