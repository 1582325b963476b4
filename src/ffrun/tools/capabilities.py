"""Capability queries against an ffmpeg executable.

A Capabilities session runs ffmpeg synchronously with one introspection
flag (``-codecs``, ``-filters``...) or a per-item help request
(``-h encoder=libx264``), parses the text with ffrun.parsers and memoizes
the result in its CapabilityCache. Every query blocks until ffmpeg exits.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from ffrun.exceptions import CapabilityParseError, UnknownCapabilityError
from ffrun.parsers.help import (
    BsfInfo,
    CoderInfo,
    DemuxerInfo,
    FilterInfo,
    MuxerInfo,
    check_unknown,
    parse_bsf_help,
    parse_coder_help,
    parse_demuxer_help,
    parse_filter_help,
    parse_muxer_help,
)
from ffrun.parsers.tables import (
    ChannelLayouts,
    CodecEntry,
    CoderEntry,
    FilterEntry,
    FormatEntry,
    PixelFormatEntry,
    ProtocolList,
    SampleFormatEntry,
    parse_bsfs,
    parse_codecs,
    parse_coders,
    parse_colors,
    parse_filters,
    parse_formats,
    parse_layouts,
    parse_pix_fmts,
    parse_protocols,
    parse_sample_fmts,
)
from ffrun.tools.cache import CapabilityCache
from ffrun.tools.locator import require_tool
from ffrun.tools.subprocess import DEFAULT_QUERY_TIMEOUT, Runner, run_command

logger = logging.getLogger(__name__)

T = TypeVar("T")

_VERSION_RE = re.compile(r"version (\S+)")

# Listing names accepted by Capabilities.listing()
LISTINGS = (
    "formats",
    "demuxers",
    "muxers",
    "devices",
    "codecs",
    "decoders",
    "encoders",
    "bsfs",
    "protocols",
    "filters",
    "pix_fmts",
    "sample_fmts",
    "layouts",
    "colors",
)

# Item types accepted by Capabilities.info()
DETAIL_TYPES = ("demuxer", "muxer", "decoder", "encoder", "filter", "bsf")


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles "6.1.1" -> (6, 1, 1), "n6.1" -> (6, 1) and
    "7.0-full_build" -> (7, 0). Git snapshots such as "N-113090-g1a2b3c"
    have no comparable version and return None.
    """
    if not version_str:
        return None
    version_str = version_str.lstrip("nv")
    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None
    return tuple(int(p) for p in match.group(1).split("."))


class Capabilities:
    """Cached capability queries for one ffmpeg executable.

    Example:
        caps = Capabilities()
        if caps.supports_encoder("libx264"):
            info = caps.encoder_info("libx264")
            print(info.pix_fmts)
    """

    def __init__(
        self,
        executable: str | Path | None = None,
        cache: CapabilityCache | None = None,
        runner: Runner | None = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> None:
        """Initialize the session.

        Args:
            executable: ffmpeg to query. Resolved through configuration
                when omitted.
            cache: Cache to populate. A private cache is created if omitted.
            runner: Replacement for run_command, for testing.
            timeout: Seconds allowed for each query.
        """
        self._executable = Path(executable) if executable else None
        self.cache = cache if cache is not None else CapabilityCache()
        self._runner = runner or run_command
        self.timeout = timeout

    @property
    def executable(self) -> Path:
        if self._executable is None:
            self._executable = require_tool("ffmpeg")
        return self._executable

    def _run(self, *args: str) -> tuple[str, str, int]:
        return self._runner([str(self.executable), *args], self.timeout)

    # =========================================================================
    # Listings
    # =========================================================================

    def _listing(self, name: str, parser: Callable[[str], T]) -> T:
        def query() -> T:
            stdout, _stderr, _rc = self._run(f"-{name}", "-hide_banner")
            return parser(stdout)

        return self.cache.get_or_create(name, query)

    def listing(self, name: str) -> Any:
        """Return a listing by its flag name (``"codecs"``, ``"filters"``...).

        Raises:
            ValueError: If the name is not a known listing.
        """
        if name not in LISTINGS:
            raise ValueError(f"Unknown capability listing: {name}")
        return getattr(self, name)()

    def version(self) -> str:
        """Return the version string printed by ``ffmpeg -version``.

        Raises:
            CapabilityParseError: If the output names no version.
        """

        def query() -> str:
            stdout, _stderr, _rc = self._run("-version")
            match = _VERSION_RE.search(stdout)
            if not match:
                raise CapabilityParseError(stdout)
            return match.group(1)

        return self.cache.get_or_create("version", query)

    def version_tuple(self) -> tuple[int, ...] | None:
        return parse_version_string(self.version())

    def formats(self) -> dict[str, FormatEntry]:
        return self._listing("formats", parse_formats)

    def demuxers(self) -> dict[str, FormatEntry]:
        return self._listing("demuxers", lambda text: parse_formats(text, False))

    def muxers(self) -> dict[str, FormatEntry]:
        return self._listing("muxers", lambda text: parse_formats(text, False))

    def devices(self) -> dict[str, FormatEntry]:
        return self._listing("devices", parse_formats)

    def codecs(self) -> dict[str, CodecEntry]:
        return self._listing("codecs", parse_codecs)

    def decoders(self) -> dict[str, CoderEntry]:
        return self._listing("decoders", parse_coders)

    def encoders(self) -> dict[str, CoderEntry]:
        return self._listing("encoders", parse_coders)

    def bsfs(self) -> list[str]:
        return self._listing("bsfs", parse_bsfs)

    def protocols(self) -> ProtocolList:
        return self._listing("protocols", parse_protocols)

    def filters(self) -> dict[str, FilterEntry]:
        return self._listing("filters", parse_filters)

    def pix_fmts(self) -> dict[str, PixelFormatEntry]:
        return self._listing("pix_fmts", parse_pix_fmts)

    def sample_fmts(self) -> dict[str, SampleFormatEntry]:
        return self._listing("sample_fmts", parse_sample_fmts)

    def layouts(self) -> ChannelLayouts:
        return self._listing("layouts", parse_layouts)

    def colors(self) -> dict[str, str]:
        return self._listing("colors", parse_colors)

    # =========================================================================
    # Detail queries
    # =========================================================================

    def _detail(self, item_type: str, name: str, parser: Callable[[str], T]) -> T:
        def query() -> T:
            stdout, stderr, _rc = self._run("-h", f"{item_type}={name}", "-hide_banner")
            check_unknown(stderr, item_type, name)
            check_unknown(stdout, item_type, name)
            return parser(stdout if stdout.strip() else stderr)

        return self.cache.get_or_create((item_type, name), query)

    def info(self, item_type: str, name: str) -> Any:
        """Return the detail record of any item type.

        Raises:
            ValueError: If the item type is not known.
            UnknownCapabilityError: If ffmpeg does not know the item.
        """
        if item_type not in DETAIL_TYPES:
            raise ValueError(f"Unknown item type: {item_type}")
        return getattr(self, f"{item_type}_info")(name)

    def demuxer_info(self, name: str) -> DemuxerInfo:
        return self._detail("demuxer", name, parse_demuxer_help)

    def muxer_info(self, name: str) -> MuxerInfo:
        return self._detail("muxer", name, parse_muxer_help)

    def decoder_info(self, name: str) -> CoderInfo:
        return self._detail("decoder", name, parse_coder_help)

    def encoder_info(self, name: str) -> CoderInfo:
        return self._detail("encoder", name, parse_coder_help)

    def filter_info(self, name: str) -> FilterInfo:
        return self._detail("filter", name, parse_filter_help)

    def bsf_info(self, name: str) -> BsfInfo:
        return self._detail("bsf", name, parse_bsf_help)

    # =========================================================================
    # Predicates
    # =========================================================================

    def _supports(self, item_type: str, name: str) -> bool:
        try:
            self.info(item_type, name)
        except UnknownCapabilityError:
            return False
        return True

    def supports_demuxer(self, name: str) -> bool:
        return self._supports("demuxer", name)

    def supports_muxer(self, name: str) -> bool:
        return self._supports("muxer", name)

    def supports_decoder(self, name: str) -> bool:
        return self._supports("decoder", name)

    def supports_encoder(self, name: str) -> bool:
        return self._supports("encoder", name)

    def supports_filter(self, name: str) -> bool:
        return self._supports("filter", name)

    def supports_bsf(self, name: str) -> bool:
        return self._supports("bsf", name)
