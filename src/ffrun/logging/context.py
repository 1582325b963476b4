"""Run context for log records.

Each ffmpeg run gets a short id, and the ffmpeg pid once it is spawned.
Both live in a context variable: the run's threads copy the context when
they start, and the consumer re-enters it while dispatching listeners, so
every record logged on behalf of a run can be tagged with it.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator


@dataclass(frozen=True)
class RunInfo:
    """Identity of the ffmpeg run a record belongs to."""

    run_id: str
    pid: int | None = None

    @property
    def tag(self) -> str:
        """Prefix for text log lines: ``[R<id>]`` or ``[R<id> pid=<pid>]``."""
        if self.pid is None:
            return f"[R{self.run_id}] "
        return f"[R{self.run_id} pid={self.pid}] "


_current_run: contextvars.ContextVar[RunInfo | None] = contextvars.ContextVar(
    "ffrun_run", default=None
)


def current_run() -> RunInfo | None:
    """The run of the calling context, if any."""
    return _current_run.get()


def get_run_id() -> str | None:
    run = _current_run.get()
    return run.run_id if run else None


@contextmanager
def run_context(run_id: str, pid: int | None = None) -> Generator[RunInfo, None, None]:
    """Tag log records emitted inside the block with a run.

    Example:
        with run_context("3f2a9c01"):
            logger.info("Starting ffmpeg")  # [R3f2a9c01] ...
    """
    info = RunInfo(run_id, pid)
    token = _current_run.set(info)
    try:
        yield info
    finally:
        _current_run.reset(token)


class RunContextFilter(logging.Filter):
    """Copy the current run onto each record.

    Sets ``run_id`` and ``run_pid`` for the JSON formatter and ``run_tag``
    for the text format. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        run = _current_run.get()
        record.run_id = run.run_id if run else None
        record.run_pid = run.pid if run else None
        record.run_tag = run.tag if run else ""
        return True
