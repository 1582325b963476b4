"""ffmpeg executable discovery and capability queries."""

from ffrun.tools.cache import CapabilityCache
from ffrun.tools.capabilities import (
    DETAIL_TYPES,
    LISTINGS,
    Capabilities,
    parse_version_string,
)
from ffrun.tools.locator import find_tool, require_tool
from ffrun.tools.subprocess import run_command

__all__ = [
    "DETAIL_TYPES",
    "LISTINGS",
    "Capabilities",
    "CapabilityCache",
    "find_tool",
    "parse_version_string",
    "require_tool",
    "run_command",
]
