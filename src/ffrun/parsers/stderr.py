"""Helpers for scanning ffmpeg stderr text.

ffmpeg continues a multi-line block by indenting the following lines, so
a block ends at a newline that is not followed by whitespace. Status
lines are rewritten in place with a bare carriage return.
"""

from __future__ import annotations

import re
import signal

_BLOCK_SPLIT_RE = re.compile(r"\r?\n(?!\s|\Z)")
_PROGRESS_SPLIT_RE = re.compile(r"\r(?!\n)|\r?\n(?!\s|\Z)")
_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
_SIGNAL_RE = re.compile(r"Exiting normally, received signal (\d+)\.")


def split_blocks(text: str, progress: bool = False) -> tuple[list[str], str]:
    """Split buffered text into complete blocks and an incomplete tail.

    Args:
        text: Buffered stderr text.
        progress: Also split on bare carriage returns.

    Returns:
        Tuple of (complete blocks, remaining buffer). The remainder may
        itself be complete when it ends with a newline; callers decide.
    """
    pattern = _PROGRESS_SPLIT_RE if progress else _BLOCK_SPLIT_RE
    blocks = pattern.split(text)
    return blocks[:-1], blocks[-1]


def extract_error(text: str) -> str:
    """Extract the trailing top-level error statement from stderr text.

    Lines starting with a space or ``[`` (indented detail and tagged log
    lines) reset the collected lines; status lines are skipped.

    Returns:
        The trailing run of top-level lines joined with newlines.
    """
    tail = ErrorTail()
    tail.feed(text)
    tail.close()
    return tail.message


def signal_name(number: int) -> str:
    """Return the symbolic name of a signal number, e.g. 2 -> "SIGINT"."""
    try:
        return signal.Signals(number).name
    except ValueError:
        return f"SIG{number}"


def received_signal(text: str) -> str | None:
    """Return the signal name from ffmpeg's orderly-shutdown message."""
    match = _SIGNAL_RE.search(text)
    if not match:
        return None
    return signal_name(int(match.group(1)))


class ErrorTail:
    """Incremental form of ``extract_error``.

    Fed stderr chunks as they arrive; ``message`` always reflects the
    complete lines seen so far.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._buffer = ""

    def feed(self, text: str) -> None:
        """Consume a chunk of stderr text."""
        parts = _LINE_SPLIT_RE.split(self._buffer + text)
        self._buffer = parts.pop()
        for line in parts:
            self._add(line)

    def close(self) -> None:
        """Consume any unterminated final line."""
        if self._buffer:
            self._add(self._buffer)
            self._buffer = ""

    def _add(self, line: str) -> None:
        if not line.strip():
            return
        if line[0] in " \t[":
            self._lines = []
        elif not line.startswith(("frame=", "size=")):
            self._lines.append(line)

    @property
    def message(self) -> str:
        """The current error tail."""
        return "\n".join(self._lines)
