"""Stderr state machine for a running ffmpeg process.

In monitored mode stderr goes through three phases:

- HEADER: format dumps and the stream mapping are collected until the
  first status line appears, then CodecData is emitted.
- PROGRESS: each status line becomes a Progress event, until the line
  marked as last.
- TAIL: only the log and the error tail are kept.

Unmonitored runs start in TAIL. Phases never move backwards.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from ffrun.parsers import (
    ErrorTail,
    FormatDump,
    StreamMapping,
    parse_format_dump,
    parse_progress_line,
    parse_stream_mapping,
)
from ffrun.parsers.progress import is_progress_line
from ffrun.parsers.stderr import split_blocks
from ffrun.process.events import CodecData, Event, Progress

logger = logging.getLogger(__name__)

_STATUS_LINE_RE = re.compile(r"^(?:frame|size)=[^\r\n]*[\r\n]")


class Phase(Enum):
    """Stderr scanning phase."""

    HEADER = "header"
    PROGRESS = "progress"
    TAIL = "tail"


class StderrMonitor:
    """Consumes stderr text and turns it into events.

    Not thread-safe; a run feeds it from its single stderr reader.
    """

    def __init__(self, monitored: bool = True) -> None:
        self.phase = Phase.HEADER if monitored else Phase.TAIL
        self._buffer = ""
        self._log: list[str] = []
        self._tail = ErrorTail()
        self._inputs: list[FormatDump] = []
        self._outputs: list[FormatDump] = []
        self._mapping: list[StreamMapping] = []

    @property
    def log(self) -> str:
        """All stderr text received so far."""
        return "".join(self._log)

    @property
    def error_message(self) -> str:
        """The trailing top-level error lines."""
        return self._tail.message

    def feed(self, text: str) -> list[Event]:
        """Consume a chunk of stderr text.

        Returns:
            Events produced by this chunk, in order.
        """
        if not text:
            return []
        self._log.append(text)
        self._tail.feed(text)
        if self.phase is Phase.TAIL:
            return []

        self._buffer += text
        events: list[Event] = []
        if self.phase is Phase.HEADER:
            self._scan_header(events)
        if self.phase is Phase.PROGRESS:
            self._scan_progress(events)
        return events

    def close(self) -> list[Event]:
        """Flush buffered text when stderr reaches end of file."""
        self._tail.close()
        events: list[Event] = []
        if self.phase is Phase.HEADER:
            if self._buffer:
                self._header_block(self._buffer.rstrip("\r\n"))
            self._emit_codec_data(events)
        elif self.phase is Phase.PROGRESS and self._buffer:
            remainder = self._buffer.strip("\r\n")
            if is_progress_line(remainder):
                events.append(Progress(parse_progress_line(remainder)))
        self._buffer = ""
        self.phase = Phase.TAIL
        return events

    def _header_block(self, block: str) -> None:
        if block.startswith(("Input #", "Output #")):
            dump = parse_format_dump(block)
            if dump is None:
                logger.debug("Unparseable format dump: %s", block.splitlines()[0])
            elif dump.type == "input":
                self._inputs.append(dump)
            else:
                self._outputs.append(dump)
        elif block.startswith("Stream mapping:"):
            self._mapping.extend(parse_stream_mapping(block))

    def _emit_codec_data(self, events: list[Event]) -> None:
        if self._inputs or self._outputs or self._mapping:
            events.append(
                CodecData(
                    inputs=self._inputs,
                    outputs=self._outputs,
                    mapping=self._mapping,
                )
            )

    def _scan_header(self, events: list[Event]) -> None:
        blocks, self._buffer = split_blocks(self._buffer)
        # A complete status line may still sit in the buffer
        if _STATUS_LINE_RE.match(self._buffer):
            blocks.append(self._buffer)
            self._buffer = ""

        for i, block in enumerate(blocks):
            if is_progress_line(block):
                rest = "\n".join(blocks[i:])
                self._buffer = rest + ("\n" + self._buffer if self._buffer else "")
                self.phase = Phase.PROGRESS
                self._emit_codec_data(events)
                return
            self._header_block(block)

    def _scan_progress(self, events: list[Event]) -> None:
        blocks, self._buffer = split_blocks(self._buffer, progress=True)
        if self._buffer.endswith("\n"):
            blocks.append(self._buffer.rstrip("\r\n"))
            self._buffer = ""

        for block in blocks:
            if not is_progress_line(block):
                continue
            record = parse_progress_line(block)
            logger.debug("Progress: %s", block.strip())
            events.append(Progress(record))
            if record.last:
                self.phase = Phase.TAIL
                self._buffer = ""
                return
