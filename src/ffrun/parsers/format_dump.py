"""Parsing of ffmpeg format dumps.

ffmpeg describes each opened input and output on stderr::

    Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'in.mp4':
      Metadata:
        major_brand     : isom
      Duration: 00:00:10.00, start: 0.000000, bitrate: 1205 kb/s
      Stream #0:0[0x1](und): Video: h264 (High) (avc1 / 0x31637661), ...
        Metadata:
          handler_name    : VideoHandler

Continuation lines are indented, so one dump is one block of text whose
sub-blocks (chapters, programs, streams) start at known line prefixes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ffrun.parsers.progress import time_to_seconds, to_number

_HEADER_RE = re.compile(
    r"(Output|Input) #(\d+), (\S+), (?:to|from) '([^']+)':\r?(?:\n|$)"
)
_DURATION_RE = re.compile(
    r"^  Duration: ([^,\r\n]+)(?:, start: ([^,\r\n]+))?, bitrate: ([^\r\n]+?)\r?$",
    re.MULTILINE,
)
_BLOCK_START_RE = re.compile(
    r"^(?:    Chapter #|  Program |  No Program|  Stream #|    Stream #)",
    re.MULTILINE,
)
_CHAPTER_RE = re.compile(
    r"Chapter #\d+:(\d+): start ([0-9.-]+), end ([0-9.-]+)"
)
_PROGRAM_RE = re.compile(r"Program (\d+)[ \t]*([^\r\n]*)")
_STREAM_RE = re.compile(
    r"Stream #\d+:(\d+)(?:\[0x([0-9a-f]+)\])?(?:\(([^)]+)\))?: "
    r"(Audio|Video|Subtitle|Data|Attachment|Unknown): ([^\r\n]+)"
)
_KBPS_RE = re.compile(r"^([\d.]+) kb/s$")
_DISPOSITION_RE = re.compile(r"\s*\(([^()]+)\)$")
_MAPPING_RE = re.compile(
    r"^(?:Stream )?#?(\S+?)(?: \(([^)]*)\))? -> (?:Stream )?#?(\S+?)(?: \((.*)\))?$"
)

# Disposition names printed after the stream description
DISPOSITIONS = frozenset(
    (
        "default",
        "dub",
        "original",
        "comment",
        "lyrics",
        "karaoke",
        "forced",
        "hearing impaired",
        "visual impaired",
        "clean effects",
        "attached pic",
        "timed thumbnails",
        "non-diegetic",
        "captions",
        "descriptions",
        "metadata",
        "dependent",
        "still image",
        "multilayer",
    )
)


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class StreamRecord:
    """One ``Stream #f:i`` entry of a format dump."""

    index: int
    type: str
    codecdata: list[str] = field(default_factory=list)
    id: int | None = None
    language: str | None = None
    dispositions: list[str] = field(default_factory=list)
    sidedata: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Chapter:
    """One chapter of an input, times in seconds."""

    index: int
    start: float
    end: float
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class Program:
    """A program of a multi-program input; index is None for "No Program"."""

    index: int | None
    name: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    streams: list[StreamRecord] = field(default_factory=list)


@dataclass
class FormatDump:
    """One ``Input #n`` or ``Output #n`` block.

    Attributes:
        type: "input" or "output".
        duration: Seconds, None if absent or N/A.
        start: Start time in seconds, None if absent or N/A.
        bitrate: Bits per second, None if absent or N/A.
        streams: Streams not owned by a program.
    """

    type: str
    index: int
    format: str
    url: str
    duration: float | None = None
    start: float | None = None
    bitrate: float | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    chapters: list[Chapter] = field(default_factory=list)
    programs: list[Program] = field(default_factory=list)
    streams: list[StreamRecord] = field(default_factory=list)

    @property
    def all_streams(self) -> list[StreamRecord]:
        """Streams of the format and of every program."""
        streams = list(self.streams)
        for program in self.programs:
            streams.extend(program.streams)
        return streams


@dataclass(frozen=True)
class StreamMapping:
    """One line of the ``Stream mapping:`` section.

    Example: ``Stream #0:0 -> #0:0 (h264 (native) -> h264 (libx264))``
    maps source "0:0" to target "0:0" with target_detail
    "h264 (native) -> h264 (libx264)".
    """

    source: str
    target: str
    source_detail: str | None = None
    target_detail: str | None = None


# =============================================================================
# Parsers
# =============================================================================


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _split_sections(text: str) -> dict[str, list[str]]:
    """Group indented lines under ``Name:`` section headers.

    A section holds every following line indented deeper than its header.
    """
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    header_indent = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        stripped = line.strip()
        if current is not None and _indent(line) > header_indent:
            current.append(line)
            continue
        if stripped.endswith(":") and ":" not in stripped[:-1]:
            current = sections.setdefault(stripped[:-1], [])
            header_indent = _indent(line)
        else:
            current = None
    return sections


def parse_metadata_dump(text: str) -> dict[str, str]:
    """Parse ``key : value`` lines.

    Lines consisting of ``: text`` continue the previous value on a new
    line. A line ending in ``:`` is a section header when it is indented
    less than the entries, and an entry with an empty value otherwise.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    entry_indents = [
        _indent(line)
        for line in lines
        if line.partition(":")[0].strip() and line.partition(":")[2].strip()
    ]
    entry_indent = min(entry_indents) if entry_indents else None

    metadata: dict[str, str] = {}
    last_key: str | None = None
    for line in lines:
        stripped = line.strip()
        key, sep, value = stripped.partition(":")
        if not sep:
            continue
        key_text = key
        key = key.strip()
        if not key:
            if last_key is not None:
                metadata[last_key] += "\n" + value.strip()
            continue
        if not value.strip():
            if entry_indent is not None:
                is_header = _indent(line) < entry_indent
            else:
                # ffmpeg pads entry keys before the colon
                is_header = key_text == key
            if is_header:
                continue
        metadata[key] = value.strip()
        last_key = key
    return metadata


def split_codecdata(text: str) -> list[str]:
    """Split a stream description on commas outside brackets."""
    entries: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "([":
            depth += 1
        elif ch in ")]" and depth:
            depth -= 1
        if ch == "," and depth == 0:
            entries.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    entries.append("".join(current).strip())
    return [entry for entry in entries if entry]


def _split_dispositions(codecdata: list[str]) -> list[str]:
    if not codecdata:
        return []
    last = codecdata[-1]
    dispositions: list[str] = []
    while True:
        match = _DISPOSITION_RE.search(last)
        if not match or match.group(1) not in DISPOSITIONS:
            break
        dispositions.insert(0, match.group(1))
        last = last[: match.start()]
    if dispositions:
        if last.strip():
            codecdata[-1] = last.strip()
        else:
            codecdata.pop()
    return dispositions


def parse_stream_dump(text: str) -> StreamRecord | None:
    """Parse a stream block.

    Returns:
        The stream record, or None if no stream line is present.
    """
    match = _STREAM_RE.search(text)
    if not match:
        return None

    index, hex_id, language, kind, description = match.groups()
    codecdata = split_codecdata(description)
    dispositions = _split_dispositions(codecdata)

    sections = _split_sections(text[match.end() :])
    sidedata = None
    if sections.get("Side data"):
        sidedata = "\n".join(line.strip() for line in sections["Side data"])

    return StreamRecord(
        index=int(index),
        type=kind.lower(),
        codecdata=codecdata,
        id=int(hex_id, 16) if hex_id else None,
        language=language,
        dispositions=dispositions,
        sidedata=sidedata,
        metadata=parse_metadata_dump("\n".join(sections.get("Metadata", []))),
    )


def _block_metadata(text: str, bare: bool = False) -> dict[str, str]:
    sections = _split_sections(text)
    if "Metadata" in sections:
        return parse_metadata_dump("\n".join(sections["Metadata"]))
    return parse_metadata_dump(text) if bare else {}


def _parse_bitrate(text: str) -> float | None:
    match = _KBPS_RE.match(text.strip())
    if not match:
        return None
    number = to_number(match.group(1))
    return None if number is None else number * 1000


def parse_format_dump(text: str) -> FormatDump | None:
    """Parse one ``Input #n`` / ``Output #n`` block.

    Returns:
        The parsed dump, or None if the text has no dump header.
    """
    match = _HEADER_RE.search(text)
    if not match:
        return None

    kind, index, fmt, url = match.groups()
    dump = FormatDump(type=kind.lower(), index=int(index), format=fmt, url=url)
    rest = text[match.end() :]
    head = ""

    duration = _DURATION_RE.search(rest)
    if duration:
        head = rest[: duration.start()]
        length, start, bitrate = duration.groups()
        if length != "N/A":
            dump.duration = time_to_seconds(length)
        if start is not None and start.strip() != "N/A":
            start_value = to_number(start.strip())
            dump.start = None if start_value is None else float(start_value)
        if bitrate != "N/A":
            dump.bitrate = _parse_bitrate(bitrate)
        rest = rest[duration.end() :]

    starts = [m.start() for m in _BLOCK_START_RE.finditer(rest)]
    head += rest[: starts[0]] if starts else rest
    dump.metadata = _block_metadata(head, bare=True)

    for pos, end in zip(starts, [*starts[1:], len(rest)]):
        block = rest[pos:end]
        stripped = block.lstrip(" ")
        if stripped.startswith("Chapter #"):
            chapter = _CHAPTER_RE.match(stripped)
            if chapter:
                dump.chapters.append(
                    Chapter(
                        index=int(chapter.group(1)),
                        start=float(chapter.group(2)),
                        end=float(chapter.group(3)),
                        metadata=_block_metadata(block),
                    )
                )
        elif stripped.startswith("Program "):
            program = _PROGRAM_RE.match(stripped)
            if program:
                dump.programs.append(
                    Program(
                        index=int(program.group(1)),
                        name=program.group(2).strip() or None,
                        metadata=_block_metadata(block),
                    )
                )
        elif stripped.startswith("No Program"):
            dump.programs.append(Program(index=None))
        else:
            stream = parse_stream_dump(block)
            if stream is None:
                continue
            if dump.programs:
                dump.programs[-1].streams.append(stream)
            else:
                dump.streams.append(stream)
    return dump


def parse_stream_mapping(text: str) -> list[StreamMapping]:
    """Parse the lines of a ``Stream mapping:`` block."""
    mappings: list[StreamMapping] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped == "Stream mapping:":
            continue
        match = _MAPPING_RE.match(stripped)
        if match:
            source, source_detail, target, target_detail = match.groups()
            mappings.append(
                StreamMapping(source, target, source_detail, target_detail)
            )
    return mappings
