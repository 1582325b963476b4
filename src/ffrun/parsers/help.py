"""Parsers for per-item help dumps (``ffmpeg -h <type>=<name>``).

Every dump starts with a header line naming the item, followed by a run
of optional ``    Label: value`` lines and finally the AVOptions listing::

    Muxer mp4 [MP4 (MPEG-4 Part 14)]:
        Common extensions: mp4.
        Mime type: video/mp4.
        Default video codec: h264.
        Default audio codec: aac.
    mov/mp4/tgp/psp/tg2/ipod/ismv/f4v muxer AVOptions:
      ...

Labeled lines may appear in any order. Absent labels leave empty fields;
labels this module does not know are kept in ``extra_sections``. A dump
whose header does not match raises CapabilityParseError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ffrun.exceptions import CapabilityParseError, UnknownCapabilityError

_SECTION_RE = re.compile(r"^    ([A-Z][A-Za-z ]*?):[ \t]*(.*?)[ \t]*$")
_DEMUXER_RE = re.compile(r"^Demuxer (\S+) \[([^\]]*)\]:$")
_MUXER_RE = re.compile(r"^Muxer (\S+) \[([^\]]*)\]:$")
_CODER_RE = re.compile(r"^(Encoder|Decoder) (\S+) \[([^\]]*)\]:$")
_FILTER_RE = re.compile(r"^Filter (\S+)$")
_BSF_RE = re.compile(r"^Bit stream filter (\S+)$")
_PAD_RE = re.compile(r"^\s+#(\d+): (\S+) \(([^)]+)\)$")

_UNKNOWN_PREFIXES = (
    "Unknown format",
    "Unknown filter",
    "Unknown bit stream filter",
    "Unknown bitstream filter",
    "Unknown encoder",
    "Unknown decoder",
    "No codec name specified",
)
_UNKNOWN_SUFFIXES = (
    "is not recognized by FFmpeg.",
    "FFmpeg might need to be recompiled with additional external libraries.",
)
_TIMELINE_TEXT = "This filter has support for timeline"


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class DemuxerInfo:
    """Parsed ``-h demuxer=<name>`` output."""

    name: str
    long_name: str
    extensions: list[str] = field(default_factory=list)
    mime_types: list[str] = field(default_factory=list)
    extra_sections: dict[str, str] = field(default_factory=dict)
    options: str = ""


@dataclass(frozen=True)
class MuxerInfo:
    """Parsed ``-h muxer=<name>`` output."""

    name: str
    long_name: str
    extensions: list[str] = field(default_factory=list)
    mime_types: list[str] = field(default_factory=list)
    video_codec: str | None = None
    audio_codec: str | None = None
    subtitle_codec: str | None = None
    extra_sections: dict[str, str] = field(default_factory=dict)
    options: str = ""


@dataclass(frozen=True)
class CoderInfo:
    """Parsed ``-h encoder=<name>`` or ``-h decoder=<name>`` output."""

    type: str  # "encoder" or "decoder"
    name: str
    long_name: str
    capabilities: list[str] = field(default_factory=list)
    threading: list[str] = field(default_factory=list)
    hw_devices: list[str] = field(default_factory=list)
    framerates: list[str] = field(default_factory=list)
    pix_fmts: list[str] = field(default_factory=list)
    sample_rates: list[int] = field(default_factory=list)
    sample_fmts: list[str] = field(default_factory=list)
    channel_layouts: list[str] = field(default_factory=list)
    extra_sections: dict[str, str] = field(default_factory=dict)
    options: str = ""


@dataclass(frozen=True)
class FilterPad:
    """One input or output pad of a filter."""

    index: int
    name: str
    type: str


@dataclass(frozen=True)
class FilterInfo:
    """Parsed ``-h filter=<name>`` output.

    ``dynamic_inputs``/``dynamic_outputs`` are set when the pads depend on
    the filter options; ``inputs``/``outputs`` are then empty.
    """

    name: str
    description: str
    slice_threading: bool = False
    inputs: list[FilterPad] = field(default_factory=list)
    outputs: list[FilterPad] = field(default_factory=list)
    dynamic_inputs: bool = False
    dynamic_outputs: bool = False
    timeline_support: bool = False
    options: str = ""


@dataclass(frozen=True)
class BsfInfo:
    """Parsed ``-h bsf=<name>`` output."""

    name: str
    codecs: list[str] = field(default_factory=list)
    extra_sections: dict[str, str] = field(default_factory=dict)
    options: str = ""


# =============================================================================
# Helpers
# =============================================================================


def check_unknown(text: str, item_type: str = "", name: str = "") -> None:
    """Raise if the text is ffmpeg's response for an unknown item.

    Raises:
        UnknownCapabilityError: With the raw text as message.
    """
    stripped = text.strip()
    if stripped.startswith(_UNKNOWN_PREFIXES) or stripped.endswith(
        _UNKNOWN_SUFFIXES
    ):
        raise UnknownCapabilityError(text, item_type=item_type, name=name)


def _header(text: str, pattern: re.Pattern[str]) -> tuple[re.Match[str], list[str]]:
    lines = text.strip("\r\n").splitlines()
    match = pattern.match(lines[0]) if lines else None
    if not match:
        raise CapabilityParseError(text)
    return match, lines[1:]


def _sections(lines: list[str]) -> tuple[dict[str, str], str]:
    """Consume leading labeled lines; return them and the remaining text."""
    sections: dict[str, str] = {}
    i = 0
    while i < len(lines):
        match = _SECTION_RE.match(lines[i])
        if not match:
            break
        sections[match.group(1)] = match.group(2)
        i += 1
    return sections, "\n".join(lines[i:]).strip("\n")


def _words(value: str | None) -> list[str]:
    if not value or value == "none":
        return []
    return value.split()


def _comma_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item for item in value.rstrip(".").split(",") if item]


def _single(value: str | None) -> str | None:
    return value.rstrip(".") if value else None


# =============================================================================
# Parsers
# =============================================================================


def parse_demuxer_help(text: str) -> DemuxerInfo:
    """Parse ``ffmpeg -h demuxer=<name>`` output."""
    check_unknown(text, "demuxer")
    match, lines = _header(text, _DEMUXER_RE)
    sections, options = _sections(lines)
    return DemuxerInfo(
        name=match.group(1),
        long_name=match.group(2),
        extensions=_comma_list(sections.pop("Common extensions", None)),
        mime_types=_comma_list(sections.pop("Mime type", None)),
        extra_sections=sections,
        options=options,
    )


def parse_muxer_help(text: str) -> MuxerInfo:
    """Parse ``ffmpeg -h muxer=<name>`` output."""
    check_unknown(text, "muxer")
    match, lines = _header(text, _MUXER_RE)
    sections, options = _sections(lines)
    return MuxerInfo(
        name=match.group(1),
        long_name=match.group(2),
        extensions=_comma_list(sections.pop("Common extensions", None)),
        mime_types=_comma_list(sections.pop("Mime type", None)),
        video_codec=_single(sections.pop("Default video codec", None)),
        audio_codec=_single(sections.pop("Default audio codec", None)),
        subtitle_codec=_single(sections.pop("Default subtitle codec", None)),
        extra_sections=sections,
        options=options,
    )


def parse_coder_help(text: str) -> CoderInfo:
    """Parse ``ffmpeg -h encoder=<name>`` or ``-h decoder=<name>`` output."""
    check_unknown(text, "codec")
    match, lines = _header(text, _CODER_RE)
    sections, options = _sections(lines)
    threading = _words(sections.pop("Threading capabilities", None))
    rates = _words(sections.pop("Supported sample rates", None))
    return CoderInfo(
        type=match.group(1).lower(),
        name=match.group(2),
        long_name=match.group(3),
        capabilities=_words(sections.pop("General capabilities", None)),
        threading=[word for word in threading if word != "and"],
        hw_devices=_words(sections.pop("Supported hardware devices", None)),
        framerates=_words(sections.pop("Supported framerates", None)),
        pix_fmts=_words(sections.pop("Supported pixel formats", None)),
        sample_rates=[int(rate) for rate in rates],
        sample_fmts=_words(sections.pop("Supported sample formats", None)),
        channel_layouts=_words(sections.pop("Supported channel layouts", None)),
        extra_sections=sections,
        options=options,
    )


def _pads(lines: list[str]) -> tuple[list[FilterPad], bool]:
    pads: list[FilterPad] = []
    dynamic = False
    for line in lines:
        match = _PAD_RE.match(line)
        if match:
            index, name, kind = match.groups()
            pads.append(FilterPad(int(index), name, kind))
        elif line.strip().startswith("dynamic"):
            dynamic = True
    return pads, dynamic


def parse_filter_help(text: str) -> FilterInfo:
    """Parse ``ffmpeg -h filter=<name>`` output."""
    check_unknown(text, "filter")
    match, lines = _header(text, _FILTER_RE)

    description = ""
    if lines and lines[0].startswith("  ") and not lines[0].startswith("    "):
        description = lines.pop(0).strip()

    slice_threading = False
    blocks: dict[str, list[str]] = {"Inputs": [], "Outputs": []}
    current: list[str] | None = None
    i = 0
    while i < len(lines) and lines[i].startswith("    "):
        line = lines[i]
        stripped = line.strip()
        if stripped == "slice threading supported":
            slice_threading = True
            current = None
        elif stripped in ("Inputs:", "Outputs:"):
            current = blocks[stripped[:-1]]
        elif current is not None:
            current.append(line)
        i += 1

    rest = lines[i:]
    timeline = any(line.startswith(_TIMELINE_TEXT) for line in rest)
    options = "\n".join(line for line in rest if not line.startswith(_TIMELINE_TEXT))

    inputs, dynamic_inputs = _pads(blocks["Inputs"])
    outputs, dynamic_outputs = _pads(blocks["Outputs"])
    return FilterInfo(
        name=match.group(1),
        description=description,
        slice_threading=slice_threading,
        inputs=inputs,
        outputs=outputs,
        dynamic_inputs=dynamic_inputs,
        dynamic_outputs=dynamic_outputs,
        timeline_support=timeline,
        options=options.strip("\n"),
    )


def parse_bsf_help(text: str) -> BsfInfo:
    """Parse ``ffmpeg -h bsf=<name>`` output."""
    check_unknown(text, "bsf")
    match, lines = _header(text, _BSF_RE)
    sections, options = _sections(lines)
    return BsfInfo(
        name=match.group(1),
        codecs=_words(sections.pop("Supported codecs", None)),
        extra_sections=sections,
        options=options,
    )
