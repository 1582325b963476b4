"""Parsers for ffmpeg capability listings.

Each listing (``-codecs``, ``-encoders``, ``-formats``, ``-filters``,
``-pix_fmts`` and friends) is a legend followed by a dashed separator
line and one row per item. Rows start with fixed-width flag columns,
followed by the item name and a description.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from ffrun.exceptions import CapabilityParseError

_CODEC_ROW_RE = re.compile(
    r"^ ([D.])([E.])([VASDT])([I.])([L.])([S.]) (\S+)\s+(.*)$"
)
_CODER_ROW_RE = re.compile(
    r"^ ([VASD])([F.])([S.])([X.])([B.])([D.]) (\S+)\s+(.*)$"
)
_FORMAT_ROW_RE = re.compile(r"^ ([D. ])([E. ])([d ]?)\s?(\S+)\s+(.*)$")
_FILTER_ROW_RE = re.compile(
    r"^ ([T.])([S.])([C.]) (\S+)\s+([AVN|]+)->([AVN|]+)\s+(.*)$"
)
_PIX_FMT_ROW_RE = re.compile(
    r"^([I.])([O.])([H.])([P.])([B.]) (\S+)\s+(\d+)\s+(\d+)(?:\s+([\d-]+))?"
)
_SAMPLE_FMT_ROW_RE = re.compile(r"^(\S+)\s+(\d+)\s*$")
_COLOR_ROW_RE = re.compile(r"^(\S+)\s+(#[0-9a-fA-F]{6})")
_CODER_LIST_RE = re.compile(r"\s*\((decoders|encoders): ([^)]*)\)")
_CODEC_REF_RE = re.compile(r"\s*\(codec ([^)]+)\)$")
_LAYOUTS_RE = re.compile(
    r"Individual channels:\s*\n(.*?)Standard channel layouts:\s*\n(.*)",
    re.DOTALL,
)
_PROTOCOLS_RE = re.compile(r"Input:\s*\n(.*?)Output:\s*\n?(.*)", re.DOTALL)

_CODEC_TYPES = {
    "V": "video",
    "A": "audio",
    "S": "subtitle",
    "D": "data",
    "T": "attachment",
}
_PAD_TYPES = {"A": "audio", "V": "video", "N": "dynamic", "|": "none"}


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class CodecEntry:
    """A row of ``-codecs``."""

    type: str
    description: str
    can_decode: bool
    can_encode: bool
    intra_frame_only: bool
    is_lossy: bool
    is_lossless: bool
    decoders: list[str] = field(default_factory=list)
    encoders: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CoderEntry:
    """A row of ``-encoders`` or ``-decoders``."""

    type: str
    description: str
    frame_mt: bool
    slice_mt: bool
    experimental: bool
    draw_horiz_band: bool
    direct_rendering: bool
    codec: str | None = None


@dataclass
class FormatEntry:
    """A row of ``-formats``, ``-demuxers``, ``-muxers`` or ``-devices``.

    The capability flags are None for listings that only show one
    direction (``-demuxers``, ``-muxers``).
    """

    description: str
    can_demux: bool | None = None
    can_mux: bool | None = None
    is_device: bool | None = None


@dataclass(frozen=True)
class FilterEntry:
    """A row of ``-filters``. Pad types are audio, video, dynamic or none."""

    description: str
    input: str
    multiple_inputs: bool
    output: str
    multiple_outputs: bool
    timeline_support: bool
    slice_threading: bool
    command_support: bool


@dataclass(frozen=True)
class PixelFormatEntry:
    """A row of ``-pix_fmts``."""

    nb_components: int
    bits_per_pixel: int
    input: bool
    output: bool
    hw_accel: bool
    paletted: bool
    bitstream: bool
    bit_depths: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class SampleFormatEntry:
    """A row of ``-sample_fmts``."""

    depth: int


@dataclass(frozen=True)
class ChannelLayouts:
    """Output of ``-layouts``.

    Attributes:
        channels: Channel name to description.
        layouts: Layout name to its channel decomposition.
    """

    channels: dict[str, str]
    layouts: dict[str, list[str]]


@dataclass(frozen=True)
class ProtocolList:
    """Output of ``-protocols``, split by direction."""

    input: list[str]
    output: list[str]


# =============================================================================
# Parsers
# =============================================================================


def _separator_index(lines: list[str]) -> int | None:
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped and set(stripped) == {"-"}:
            return i
    return None


def _table_rows(text: str) -> Iterator[str]:
    """Yield the rows after the dashed separator, or every line if none."""
    lines = text.splitlines()
    index = _separator_index(lines)
    return iter(lines if index is None else lines[index + 1 :])


def _require(result: dict, text: str) -> None:
    """Reject output that has neither rows nor a table separator."""
    if not result and _separator_index(text.splitlines()) is None:
        raise CapabilityParseError(text)


def parse_codecs(text: str) -> dict[str, CodecEntry]:
    """Parse ``ffmpeg -codecs`` output.

    Raises:
        CapabilityParseError: If no row matches.
    """
    codecs: dict[str, CodecEntry] = {}
    for row in _table_rows(text):
        match = _CODEC_ROW_RE.match(row)
        if not match or match.group(7) == "=":
            continue
        dec, enc, kind, intra, lossy, lossless, name, description = match.groups()
        coders: dict[str, list[str]] = {"decoders": [], "encoders": []}
        for coder in _CODER_LIST_RE.finditer(description):
            coders[coder.group(1)] = coder.group(2).split()
        codecs[name] = CodecEntry(
            type=_CODEC_TYPES[kind],
            description=_CODER_LIST_RE.sub("", description).strip(),
            can_decode=dec == "D",
            can_encode=enc == "E",
            intra_frame_only=intra == "I",
            is_lossy=lossy == "L",
            is_lossless=lossless == "S",
            decoders=coders["decoders"],
            encoders=coders["encoders"],
        )
    _require(codecs, text)
    return codecs


def parse_coders(text: str) -> dict[str, CoderEntry]:
    """Parse ``ffmpeg -encoders`` or ``ffmpeg -decoders`` output."""
    coders: dict[str, CoderEntry] = {}
    for row in _table_rows(text):
        match = _CODER_ROW_RE.match(row)
        if not match or match.group(7) == "=":
            continue
        kind, frame_mt, slice_mt, experimental, band, direct, name, description = (
            match.groups()
        )
        codec = _CODEC_REF_RE.search(description)
        coders[name] = CoderEntry(
            type=_CODEC_TYPES[kind],
            description=_CODEC_REF_RE.sub("", description).strip(),
            frame_mt=frame_mt == "F",
            slice_mt=slice_mt == "S",
            experimental=experimental == "X",
            draw_horiz_band=band == "B",
            direct_rendering=direct == "D",
            codec=codec.group(1) if codec else None,
        )
    _require(coders, text)
    return coders


def parse_formats(text: str, with_flags: bool = True) -> dict[str, FormatEntry]:
    """Parse ``-formats``, ``-devices``, ``-demuxers`` or ``-muxers`` output.

    Rows naming several aliases (``matroska,webm``) produce one entry per
    alias. When several rows name the same alias, the first description is
    kept and the demux/mux flags are combined.

    Args:
        text: Listing output.
        with_flags: Record capability flags (for -formats and -devices).
    """
    formats: dict[str, FormatEntry] = {}
    for row in _table_rows(text):
        match = _FORMAT_ROW_RE.match(row)
        if not match or match.group(4) == "=":
            continue
        demux, mux, device, names, description = match.groups()
        if not (demux + mux).strip(" ."):
            continue
        for name in names.split(","):
            entry = formats.setdefault(name, FormatEntry(description.strip()))
            if with_flags:
                entry.can_demux = bool(entry.can_demux) or demux == "D"
                entry.can_mux = bool(entry.can_mux) or mux == "E"
                if device:
                    entry.is_device = bool(entry.is_device) or device == "d"
    _require(formats, text)
    return formats


def parse_filters(text: str) -> dict[str, FilterEntry]:
    """Parse ``ffmpeg -filters`` output."""
    filters: dict[str, FilterEntry] = {}
    for row in _table_rows(text):
        match = _FILTER_ROW_RE.match(row)
        if not match:
            continue
        timeline, slices, command, name, inputs, outputs, description = match.groups()
        filters[name] = FilterEntry(
            description=description.strip(),
            input=_PAD_TYPES[inputs[0]],
            multiple_inputs=len(inputs) > 1,
            output=_PAD_TYPES[outputs[0]],
            multiple_outputs=len(outputs) > 1,
            timeline_support=timeline == "T",
            slice_threading=slices == "S",
            command_support=command == "C",
        )
    _require(filters, text)
    return filters


def parse_pix_fmts(text: str) -> dict[str, PixelFormatEntry]:
    """Parse ``ffmpeg -pix_fmts`` output."""
    formats: dict[str, PixelFormatEntry] = {}
    for row in _table_rows(text):
        match = _PIX_FMT_ROW_RE.match(row)
        if not match:
            continue
        inp, out, hw, pal, bits, name, components, bpp, depths = match.groups()
        formats[name] = PixelFormatEntry(
            nb_components=int(components),
            bits_per_pixel=int(bpp),
            input=inp == "I",
            output=out == "O",
            hw_accel=hw == "H",
            paletted=pal == "P",
            bitstream=bits == "B",
            bit_depths=[int(d) for d in depths.split("-") if d] if depths else [],
        )
    _require(formats, text)
    return formats


def parse_sample_fmts(text: str) -> dict[str, SampleFormatEntry]:
    """Parse ``ffmpeg -sample_fmts`` output."""
    formats: dict[str, SampleFormatEntry] = {}
    for line in text.splitlines():
        match = _SAMPLE_FMT_ROW_RE.match(line)
        if match:
            formats[match.group(1)] = SampleFormatEntry(depth=int(match.group(2)))
    _require(formats, text)
    return formats


def parse_layouts(text: str) -> ChannelLayouts:
    """Parse ``ffmpeg -layouts`` output."""
    match = _LAYOUTS_RE.search(text)
    if not match:
        raise CapabilityParseError(text)

    channels: dict[str, str] = {}
    for line in match.group(1).splitlines():
        parts = line.split(None, 1)
        if len(parts) == 2 and parts != ["NAME", "DESCRIPTION"]:
            channels[parts[0]] = parts[1].strip()

    layouts: dict[str, list[str]] = {}
    for line in match.group(2).splitlines():
        parts = line.split()
        if len(parts) == 2 and parts != ["NAME", "DECOMPOSITION"]:
            layouts[parts[0]] = parts[1].split("+")
    return ChannelLayouts(channels=channels, layouts=layouts)


def parse_colors(text: str) -> dict[str, str]:
    """Parse ``ffmpeg -colors`` output into name -> ``#rrggbb``."""
    colors: dict[str, str] = {}
    for line in text.splitlines():
        match = _COLOR_ROW_RE.match(line)
        if match:
            colors[match.group(1)] = match.group(2).lower()
    _require(colors, text)
    return colors


def parse_protocols(text: str) -> ProtocolList:
    """Parse ``ffmpeg -protocols`` output."""
    match = _PROTOCOLS_RE.search(text)
    if not match:
        raise CapabilityParseError(text)
    return ProtocolList(input=match.group(1).split(), output=match.group(2).split())


def parse_bsfs(text: str) -> list[str]:
    """Parse ``ffmpeg -bsfs`` output into a list of names."""
    head, sep, rest = text.partition("Bitstream filters:")
    names = (rest if sep else head).split()
    if not names:
        raise CapabilityParseError(text)
    return names
