"""Parsing of ffmpeg stderr progress lines.

ffmpeg prints a status line every half second while processing::

    frame=  120 fps= 30 q=28.0 size=  256kB time=00:00:04.00 bitrate= 524.3kbits/s

The terminal line of a run carries an ``L`` marker glued to the size key
(``Lsize=``). With ``-qphist`` a 32 digit hex histogram is printed, and
with ``-psnr`` a ``PSNR=Y:.. U:.. V:.. *:..`` group.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, TypeAlias, Union

logger = logging.getLogger(__name__)

Number: TypeAlias = Union[int, float]

_TOKEN_RE = re.compile(
    r"(L)"
    r"|([0-9A-Fa-f]{32})"
    r"|PSNR=Y:(\S+) U:(\S+) V:(\S+) \*:(\S+)"
    r"|(\S+)=\s*(\S+)"
)
_TIME_RE = re.compile(r"^(-?)(\d+):(\d{2}):(\d{2}(?:\.\d+)?)$")
_SIZE_RE = re.compile(r"^(-?[\d.]+)\s*(kB|KiB|kiB|MiB|mB|B)?$")
_BITRATE_RE = re.compile(r"^(-?[\d.]+)\s*kbits/s$")

_SIZE_UNITS: dict[str | None, int] = {
    None: 1,
    "B": 1,
    "kB": 1024,
    "kiB": 1024,
    "KiB": 1024,
    "mB": 1024 * 1024,
    "MiB": 1024 * 1024,
}

# Keys parsed as plain numbers
_NUMERIC_KEYS = frozenset(("frame", "fps", "q", "dup", "drop"))


@dataclass(frozen=True)
class Psnr:
    """PSNR values reported with ``-psnr``."""

    y: Number
    u: Number
    v: Number
    total: Number


@dataclass
class ProgressRecord:
    """One parsed progress snapshot.

    Fields are None when absent or reported as N/A. Keys that appear more
    than once on a line (``q`` with several video outputs) hold a list.
    Sizes are in bytes, bitrates in bit/s and times in seconds.
    """

    frame: Any = None
    fps: Any = None
    q: Any = None
    size: Any = None
    time: Any = None
    bitrate: Any = None
    speed: Any = None
    dup: Any = None
    drop: Any = None
    qp_hist: str | None = None
    psnr: Psnr | None = None
    last: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def get_percent(self, duration_seconds: float | None) -> float:
        """Calculate progress percentage based on duration.

        Args:
            duration_seconds: Total duration of the input in seconds.

        Returns:
            Progress percentage (0.0 to 100.0), or 0.0 if unknown.
        """
        if duration_seconds is None or duration_seconds <= 0:
            return 0.0
        if not isinstance(self.time, (int, float)):
            return 0.0
        return max(0.0, min(100.0, (self.time / duration_seconds) * 100))


def to_number(text: str) -> Number | None:
    """Convert numeric text to int or float, or None if not numeric."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def time_to_seconds(text: str) -> float | None:
    """Convert a ``[-]HH:MM:SS.ff`` timestamp into signed seconds.

    Returns:
        Seconds, or None if the text is not a timestamp.
    """
    match = _TIME_RE.match(text.strip())
    if not match:
        return None
    sign, hours, minutes, seconds = match.groups()
    value = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    return -value if sign else value


def parse_size(text: str) -> int | None:
    """Convert a size such as ``256kB`` or ``1024KiB`` into bytes."""
    match = _SIZE_RE.match(text)
    if not match:
        return None
    number = to_number(match.group(1))
    if number is None:
        return None
    return round(number * _SIZE_UNITS[match.group(2)])


def parse_bitrate(text: str) -> float | None:
    """Convert a bitrate such as ``524.3kbits/s`` into bit/s."""
    match = _BITRATE_RE.match(text)
    if not match:
        return None
    number = to_number(match.group(1))
    return None if number is None else number * 1000


def _convert(key: str, value: str) -> Any:
    if key in _NUMERIC_KEYS:
        return to_number(value)
    if key == "size":
        return parse_size(value)
    if key == "time":
        return time_to_seconds(value)
    if key == "bitrate":
        return parse_bitrate(value)
    if key == "speed":
        return to_number(value[:-1] if value.endswith("x") else value)
    return value


def _store(values: dict[str, Any], key: str, value: Any) -> None:
    if key not in values:
        values[key] = value
    elif isinstance(values[key], list):
        values[key].append(value)
    else:
        values[key] = [values[key], value]


def parse_progress_line(line: str) -> ProgressRecord:
    """Parse one progress line.

    Args:
        line: A ``frame=...`` or ``size=...`` status line.

    Returns:
        The decoded record. Unknown keys are kept as text in ``extra``.
    """
    values: dict[str, Any] = {}
    record = ProgressRecord()

    for match in _TOKEN_RE.finditer(line):
        (last, qp_hist, psnr_y, psnr_u, psnr_v, psnr_all, key, value) = match.groups()
        if last:
            record.last = True
        elif qp_hist:
            record.qp_hist = qp_hist
        elif psnr_y is not None:
            parts = [to_number(v) for v in (psnr_y, psnr_u, psnr_v, psnr_all)]
            if None not in parts:
                record.psnr = Psnr(*parts)  # type: ignore[arg-type]
        elif value != "N/A":
            converted = _convert(key, value)
            if converted is None:
                logger.debug("Unparseable progress value %s=%s", key, value)
                continue
            _store(values, key, converted)

    for key, value in values.items():
        if key in ProgressRecord.__dataclass_fields__ and key not in (
            "qp_hist",
            "psnr",
            "last",
            "extra",
        ):
            setattr(record, key, value)
        else:
            record.extra[key] = value
    return record


def is_progress_line(line: str) -> bool:
    """Return True if the line is a status line."""
    return line.startswith(("frame=", "size="))
