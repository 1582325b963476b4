"""Media inspection with ffprobe.

ffprobe is always asked for JSON output (``-print_format json``). Unless
hidden, the format, streams, programs and chapters sections are shown for
a url; without a url the program and library versions are shown instead.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ffrun.exceptions import FFmpegError
from ffrun.options import EncodingPolicy, OptionsInput, opts_to_args, removes
from ffrun.parsers.stderr import extract_error
from ffrun.tools.locator import require_tool
from ffrun.tools.subprocess import DEFAULT_QUERY_TIMEOUT, Runner, run_command

logger = logging.getLogger(__name__)

URL_SECTIONS = ("format", "streams", "programs", "chapters")
VERSION_SECTIONS = ("program_version", "library_versions")


def _probe_policy(sections: tuple[str, ...]) -> EncodingPolicy:
    specs = {f"hide_{section}": removes(f"show_{section}") for section in sections}
    specs["hide_all"] = removes(*(f"show_{section}" for section in sections))
    if sections == VERSION_SECTIONS:
        specs["hide_versions"] = specs["hide_all"]
    return EncodingPolicy(
        default={f"show_{section}": None for section in sections},
        fixed={"print_format": "json"},
        error=frozenset({"of", "output_format"}),
        specs=specs,
    )


URL_POLICY = _probe_policy(URL_SECTIONS)
VERSION_POLICY = _probe_policy(VERSION_SECTIONS)


def probe_args(
    url: str | Path | None = None, options: OptionsInput = None
) -> list[str]:
    """Build the ffprobe argument list, without the executable.

    Raises:
        ConfigurationError: If the output format is overridden.
    """
    policy = URL_POLICY if url else VERSION_POLICY
    args = opts_to_args(options, policy)
    if url:
        args.append(str(url))
    return args


def probe(
    url: str | Path | None = None,
    options: OptionsInput = None,
    executable: str | Path | None = None,
    timeout: float = DEFAULT_QUERY_TIMEOUT,
    runner: Runner | None = None,
) -> dict[str, Any]:
    """Run ffprobe and return its decoded JSON document.

    Args:
        url: Media to inspect. Without one, version information is shown.
        options: Extra ffprobe options. ``hide_<section>`` drops a default
            section and ``hide_all`` drops all of them.
        executable: ffprobe to run. Resolved through configuration when
            omitted.
        timeout: Seconds allowed for the query.
        runner: Replacement for run_command, for testing.

    Returns:
        The JSON document printed by ffprobe.

    Raises:
        ConfigurationError: If the output format is overridden.
        FFmpegError: If ffprobe exits with a non-zero code or prints
            something other than JSON.
    """
    args = [str(executable or require_tool("ffprobe")), *probe_args(url, options)]
    stdout, stderr, returncode = (runner or run_command)(args, timeout)
    if returncode != 0:
        message = extract_error(stderr) or f"ffprobe exited with code {returncode}"
        raise FFmpegError(message, args, stderr)
    try:
        return json.loads(stdout or "{}")
    except json.JSONDecodeError as e:
        raise FFmpegError(f"Invalid ffprobe output: {e}", args, stderr) from e
