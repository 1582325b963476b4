"""Parsers for the text ffmpeg prints on stdout and stderr."""

from ffrun.parsers.format_dump import (
    Chapter,
    FormatDump,
    Program,
    StreamMapping,
    StreamRecord,
    parse_format_dump,
    parse_metadata_dump,
    parse_stream_dump,
    parse_stream_mapping,
)
from ffrun.parsers.progress import (
    ProgressRecord,
    Psnr,
    parse_progress_line,
    time_to_seconds,
)
from ffrun.parsers.stderr import ErrorTail, extract_error, received_signal

__all__ = [
    "Chapter",
    "ErrorTail",
    "FormatDump",
    "Program",
    "ProgressRecord",
    "Psnr",
    "StreamMapping",
    "StreamRecord",
    "extract_error",
    "parse_format_dump",
    "parse_metadata_dump",
    "parse_progress_line",
    "parse_stream_dump",
    "parse_stream_mapping",
    "received_signal",
    "time_to_seconds",
]
