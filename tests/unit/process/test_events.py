"""Tests for run events and listener registration."""

import logging
from unittest.mock import MagicMock

import pytest

from ffrun.exceptions import ConfigurationError, FFmpegError
from ffrun.process.events import (
    EVENT_NAMES,
    CodecData,
    Failed,
    Finished,
    Listeners,
    Progress,
    Started,
)
from ffrun.parsers import ProgressRecord


class TestEventNames:
    """Tests for event naming."""

    def test_names(self) -> None:
        """Should expose one name per event type."""
        assert EVENT_NAMES == ("start", "codec_data", "progress", "error", "end")
        assert Started(pid=1, command=["ffmpeg"]).name == "start"
        assert CodecData().name == "codec_data"
        assert Progress(ProgressRecord()).name == "progress"
        assert Failed(FFmpegError("x")).name == "error"
        assert Finished(returncode=0).name == "end"

    def test_finished_ignores_process_in_equality(self) -> None:
        """Should compare Finished events by exit status only."""
        assert Finished(0, None, process=MagicMock()) == Finished(0, None)


class TestListeners:
    """Tests for Listeners."""

    def test_unknown_event_raises(self) -> None:
        """Should reject unknown event names."""
        with pytest.raises(ConfigurationError, match="Unknown event 'done'"):
            Listeners().on("done", print)

    def test_dispatch_calls_callbacks_in_order(self) -> None:
        """Should call every callback registered for the event."""
        calls = []
        listeners = Listeners()
        listeners.on("end", lambda event: calls.append(("a", event.returncode)))
        listeners.on("end", lambda event: calls.append(("b", event.returncode)))
        listeners.dispatch(Finished(returncode=3))
        assert calls == [("a", 3), ("b", 3)]

    def test_off_removes_callback(self) -> None:
        """Should stop calling removed callbacks."""
        callback = MagicMock()
        listeners = Listeners()
        listeners.on("progress", callback)
        listeners.off("progress", callback)
        listeners.dispatch(Progress(ProgressRecord()))
        callback.assert_not_called()

    def test_wants_ignores_default_error_listener(self) -> None:
        """Should only report callbacks registered by the caller."""
        listeners = Listeners()
        assert listeners.wants("error") is False
        listeners.on("codec_data", print)
        assert listeners.wants("progress", "codec_data") is True

    def test_raising_callback_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Should log listener errors with their traceback and keep dispatching."""
        after = MagicMock()
        listeners = Listeners()
        listeners.on("start", MagicMock(side_effect=RuntimeError("boom")))
        listeners.on("start", after)
        with caplog.at_level(logging.WARNING):
            listeners.dispatch(Started(pid=1, command=[]))
        after.assert_called_once()
        assert "Listener for start event raised" in caplog.text
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert isinstance(record.exc_info[1], RuntimeError)
        assert "RuntimeError: boom" in caplog.text

    def test_error_event_without_listener(self) -> None:
        """Should accept error events when nobody listens."""
        Listeners().dispatch(Failed(FFmpegError("x")))
