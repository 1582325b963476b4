"""Blocking invocation of ffmpeg and ffprobe for queries.

Capability listings, help dumps and probes are short-lived processes whose
complete output is captured as text.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from ffrun.exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 30.0

Runner = Callable[[Sequence[str | Path], float], tuple[str, str, int]]


def run_command(
    args: Sequence[str | Path], timeout: float = DEFAULT_QUERY_TIMEOUT
) -> tuple[str, str, int]:
    """Run a command to completion and capture its output as text.

    Output is decoded as UTF-8 with error replacement. Standard input is
    closed.

    Args:
        args: Command and arguments. Path objects are converted to strings.
        timeout: Timeout in seconds.

    Returns:
        Tuple of (stdout, stderr, returncode).

    Raises:
        ToolNotFoundError: If the executable cannot be run.
        subprocess.TimeoutExpired: If the command times out. The child is
            killed before this is raised.
    """
    str_args = [str(arg) for arg in args]
    command_name = Path(str_args[0]).name if str_args else "unknown"

    logger.debug(
        "Executing command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )
    start_time = time.monotonic()

    try:
        result = subprocess.run(  # nosec B603 - args are built by ffrun
            str_args,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning(
            "Command timed out after %ss: %s",
            timeout,
            " ".join(str_args[:3]) + ("..." if len(str_args) > 3 else ""),
            extra={"command": command_name, "timeout_seconds": timeout},
        )
        raise
    except (FileNotFoundError, PermissionError) as e:
        raise ToolNotFoundError(
            command_name, f"Cannot execute {str_args[0]}: {e}"
        ) from e

    logger.debug(
        "Command completed",
        extra={
            "command": command_name,
            "elapsed_seconds": round(time.monotonic() - start_time, 3),
            "returncode": result.returncode,
        },
    )
    return result.stdout or "", result.stderr or "", result.returncode
