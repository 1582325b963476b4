"""Events emitted by an ffmpeg run.

A run produces a single ordered channel of events::

    Started -> [CodecData] -> Progress* -> Failed* -> Finished

``Finished`` is always the last event and is produced exactly once.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - only used for the Popen type
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from ffrun.exceptions import ConfigurationError, FFmpegError
from ffrun.parsers import FormatDump, ProgressRecord, StreamMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Started:
    """The process was spawned."""

    name: ClassVar[str] = "start"
    pid: int
    command: list[str]


@dataclass(frozen=True)
class CodecData:
    """Format dumps and stream mapping from the stderr header.

    Empty lists mean the section was not printed.
    """

    name: ClassVar[str] = "codec_data"
    inputs: list[FormatDump] = field(default_factory=list)
    outputs: list[FormatDump] = field(default_factory=list)
    mapping: list[StreamMapping] = field(default_factory=list)


@dataclass(frozen=True)
class Progress:
    """One progress snapshot."""

    name: ClassVar[str] = "progress"
    record: ProgressRecord


@dataclass(frozen=True)
class Failed:
    """The run failed; emitted before Finished."""

    name: ClassVar[str] = "error"
    error: FFmpegError


@dataclass(frozen=True)
class Finished:
    """The run is over.

    Attributes:
        returncode: Exit code, None when the process was killed by a signal.
        signal: Name of the signal that ended the run, if any. When ffmpeg
            reports an orderly shutdown on a signal, that signal is used.
        process: The finished process.
    """

    name: ClassVar[str] = "end"
    returncode: int | None
    signal: str | None = None
    process: subprocess.Popen | None = field(default=None, compare=False, repr=False)


Event = Union[Started, CodecData, Progress, Failed, Finished]

EVENT_NAMES = tuple(
    cls.name for cls in (Started, CodecData, Progress, Failed, Finished)
)

Listener = Callable[[Any], None]


def _ignore_error(event: Failed) -> None:
    """Default error listener; errors are reported through events only."""


class Listeners:
    """Callbacks registered per event name.

    An ``error`` listener that does nothing is always installed, so
    callers opt in to error handling by adding their own.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, list[Listener]] = {name: [] for name in EVENT_NAMES}
        self._callbacks["error"].append(_ignore_error)

    def on(self, name: str, callback: Listener) -> None:
        """Register a callback for an event name.

        Raises:
            ConfigurationError: If the event name is unknown.
        """
        if name not in self._callbacks:
            raise ConfigurationError(
                f"Unknown event '{name}', expected one of: {', '.join(EVENT_NAMES)}"
            )
        self._callbacks[name].append(callback)

    def off(self, name: str, callback: Listener) -> None:
        """Remove a previously registered callback."""
        if callback in self._callbacks.get(name, []):
            self._callbacks[name].remove(callback)

    def wants(self, *names: str) -> bool:
        """Return True if a caller registered a callback for any name."""
        return any(
            callback is not _ignore_error
            for name in names
            for callback in self._callbacks.get(name, [])
        )

    def dispatch(self, event: Event) -> None:
        """Call every callback registered for the event."""
        for callback in list(self._callbacks[event.name]):
            try:
                callback(event)
            except Exception:
                logger.exception("Listener for %s event raised", event.name)
