"""Tests for JSONFormatter."""

import json
import logging
import sys

from ffrun.logging import JSONFormatter, RunContextFilter, run_context
from ffrun.logging.handlers import record_extras


def _record(message: str, *args, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        "ffrun.tools.subprocess", logging.WARNING, __file__, 10, message, args, exc_info
    )


class TestJSONFormatter:
    """Tests for JSONFormatter.format()."""

    def test_basic_fields(self) -> None:
        """Should emit timestamp, level, logger and message."""
        entry = json.loads(JSONFormatter().format(_record("Command timed out after %ss", 30)))
        assert list(entry) == ["timestamp", "level", "logger", "message"]
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "ffrun.tools.subprocess"
        assert entry["message"] == "Command timed out after 30s"
        assert entry["timestamp"].endswith("+00:00")

    def test_extra_fields_become_context(self) -> None:
        """Should move extra record attributes into context."""
        record = _record("Command completed")
        record.command = "ffmpeg"
        record.elapsed_seconds = 0.25
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"] == {"command": "ffmpeg", "elapsed_seconds": 0.25}

    def test_run_in_context(self) -> None:
        """Should include the run id and pid but not the text tag."""
        record = _record("Starting ffmpeg")
        with run_context("3f2a9c01", pid=4242):
            RunContextFilter().filter(record)
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"] == {"run_id": "3f2a9c01", "pid": 4242}

    def test_run_without_pid(self) -> None:
        """Should leave out the pid before the process is spawned."""
        record = _record("Starting ffmpeg")
        with run_context("3f2a9c01"):
            RunContextFilter().filter(record)
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"] == {"run_id": "3f2a9c01"}

    def test_exception(self) -> None:
        """Should format exception info."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record("failed", exc_info=sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]

    def test_non_serializable_context(self) -> None:
        """Should stringify values JSON cannot encode."""
        record = _record("x")
        record.path = object()
        entry = json.loads(JSONFormatter().format(record))
        assert entry["context"]["path"].startswith("<object object")


class TestRecordExtras:
    """Tests for record_extras()."""

    def test_standard_record_has_no_extras(self) -> None:
        """Should ignore attributes every record has."""
        record = _record("x")
        record.getMessage()
        RunContextFilter().filter(record)
        assert record_extras(record) == {}

    def test_extra_argument(self) -> None:
        """Should return attributes passed with extra=."""
        record = logging.getLogger("ffrun.test").makeRecord(
            "ffrun.test", logging.INFO, __file__, 1, "x", (), None, extra={"url": "in.mp4"}
        )
        assert record_extras(record) == {"url": "in.mp4"}
