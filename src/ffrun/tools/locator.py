"""Location of the ffmpeg and ffprobe executables.

Lookup order for each tool:
1. An explicit override passed by the caller
2. FFRUN_FFMPEG_PATH / FFRUN_FFPROBE_PATH
3. The [tools] table of the config file
4. PATH
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from ffrun.config import EnvReader, ToolPathsConfig, get_config
from ffrun.exceptions import ToolNotFoundError

logger = logging.getLogger(__name__)

TOOLS = ("ffmpeg", "ffprobe")


def _executable_name(name: str) -> str:
    return f"{name}.exe" if os.name == "nt" else name


def _resolve(name: str, path: Path) -> Path | None:
    """Resolve a configured path that may name a directory."""
    if path.is_dir():
        path = path / _executable_name(name)
    if path.is_file():
        return path
    return None


def find_tool(
    name: str,
    override: str | Path | None = None,
    tools: ToolPathsConfig | None = None,
    env: EnvReader | None = None,
) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name ("ffmpeg" or "ffprobe").
        override: Explicit path, taking precedence over configuration.
        tools: Configured tool paths. Loaded with get_config if omitted.
        env: Environment reader, for testing.

    Returns:
        Path to the executable, or None if not found.
    """
    if name not in TOOLS:
        raise ValueError(f"Unknown tool: {name}")

    if override is not None:
        found = _resolve(name, Path(override).expanduser())
        if found is None:
            logger.warning("Explicit %s path does not exist: %s", name, override)
        return found

    if tools is None:
        tools = get_config(env=env).tools
    configured: Path | None = getattr(tools, name)
    if configured is not None:
        found = _resolve(name, configured)
        if found is not None:
            return found
        logger.warning(
            "Configured %s path does not exist, falling back to PATH: %s",
            name,
            configured,
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)
    return None


def require_tool(
    name: str,
    override: str | Path | None = None,
    tools: ToolPathsConfig | None = None,
    env: EnvReader | None = None,
) -> Path:
    """Find a tool executable or fail.

    Raises:
        ToolNotFoundError: If the tool cannot be located.
    """
    path = find_tool(name, override, tools, env)
    if path is None:
        raise ToolNotFoundError(name)
    logger.debug("Using %s at %s", name, path)
    return path
