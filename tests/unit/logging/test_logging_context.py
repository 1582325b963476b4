"""Tests for run context tagging and logging configuration."""

import logging
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from ffrun.config import LoggingConfig
from ffrun.logging import (
    PACKAGE_LOGGER,
    JSONFormatter,
    RunContextFilter,
    RunInfo,
    configure_logging,
    current_run,
    get_run_id,
    run_context,
)


@pytest.fixture
def package_logger():
    """Restore the ffrun logger after configure_logging()."""
    target = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = target.handlers[:], target.level, target.propagate
    yield target
    for handler in target.handlers:
        if handler not in handlers:
            handler.close()
    target.handlers[:] = handlers
    target.setLevel(level)
    target.propagate = propagate


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("ffrun.test", logging.INFO, __file__, 1, message, None, None)


class TestRunContext:
    """Tests for run_context()."""

    def test_sets_and_resets(self) -> None:
        """Should expose the run only inside the block."""
        assert current_run() is None
        with run_context("3f2a9c01", pid=4242) as info:
            assert info == RunInfo("3f2a9c01", 4242)
            assert current_run() is info
            assert get_run_id() == "3f2a9c01"
        assert get_run_id() is None

    def test_nested(self) -> None:
        """Should restore the outer run after a nested block."""
        with run_context("outer"):
            with run_context("inner", pid=1):
                assert current_run() == RunInfo("inner", 1)
            assert current_run() == RunInfo("outer")

    def test_not_shared_with_new_threads(self) -> None:
        """Should not leak into threads started without the context."""
        seen = []
        with run_context("abc"):
            thread = threading.Thread(target=lambda: seen.append(get_run_id()))
            thread.start()
            thread.join()
        assert seen == [None]

    @pytest.mark.parametrize(
        ("info", "tag"),
        [(RunInfo("cafe0001"), "[Rcafe0001] "), (RunInfo("cafe0001", 7), "[Rcafe0001 pid=7] ")],
    )
    def test_tag(self, info: RunInfo, tag: str) -> None:
        """Should include the pid once it is known."""
        assert info.tag == tag


class TestRunContextFilter:
    """Tests for RunContextFilter."""

    def test_tags_records_inside_run(self) -> None:
        """Should add the run id, pid and text tag."""
        record = _record()
        with run_context("3f2a9c01", pid=4242):
            assert RunContextFilter().filter(record) is True
        assert record.run_id == "3f2a9c01"
        assert record.run_pid == 4242
        assert record.run_tag == "[R3f2a9c01 pid=4242] "

    def test_empty_tag_outside_run(self) -> None:
        """Should add an empty tag outside a run."""
        record = _record()
        RunContextFilter().filter(record)
        assert record.run_id is None
        assert record.run_pid is None
        assert record.run_tag == ""


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_stderr_only(self, package_logger) -> None:
        """Should log to stderr without a file."""
        target = configure_logging(LoggingConfig(level="debug"))
        assert target is package_logger
        assert target.level == logging.DEBUG
        assert target.propagate is False
        assert len(target.handlers) == 1
        assert isinstance(target.handlers[0], logging.StreamHandler)

    def test_leaves_root_logger_alone(self, package_logger) -> None:
        """Should not change the handlers of the root logger."""
        root_handlers = logging.getLogger().handlers[:]
        configure_logging(LoggingConfig())
        assert logging.getLogger().handlers == root_handlers

    def test_replaces_previous_handlers(self, package_logger, tmp_path: Path) -> None:
        """Should close the handlers of an earlier call."""
        configure_logging(LoggingConfig(file=tmp_path / "first.log"))
        first = package_logger.handlers[0]
        configure_logging(LoggingConfig(file=tmp_path / "second.log"))
        assert package_logger.handlers != [first]
        assert first.stream is None

    def test_file_handler(self, package_logger, tmp_path: Path) -> None:
        """Should create the log directory and a rotating file handler."""
        log_file = tmp_path / "logs" / "ffrun.log"
        configure_logging(LoggingConfig(file=log_file, format="json", max_bytes=1000))
        assert log_file.parent.is_dir()
        assert len(package_logger.handlers) == 1
        handler = package_logger.handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 1000
        assert isinstance(handler.formatter, JSONFormatter)

    def test_file_and_stderr(self, package_logger, tmp_path: Path) -> None:
        """Should add a stderr handler when asked to."""
        configure_logging(LoggingConfig(file=tmp_path / "ffrun.log", include_stderr=True))
        assert len(package_logger.handlers) == 2

    def test_unwritable_file_falls_back_to_stderr(self, package_logger, tmp_path: Path) -> None:
        """Should log to stderr when the file cannot be opened."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        configure_logging(LoggingConfig(file=blocker / "ffrun.log"))
        assert len(package_logger.handlers) == 1
        assert not isinstance(package_logger.handlers[0], RotatingFileHandler)

    def test_text_format_includes_run_tag(self, package_logger, tmp_path: Path) -> None:
        """Should tag text records emitted inside a run."""
        log_file = tmp_path / "ffrun.log"
        configure_logging(LoggingConfig(level="info", file=log_file))
        with run_context("cafe0001", pid=4242):
            logging.getLogger("ffrun.process.command").info("Starting ffmpeg")
        logging.getLogger("ffrun.process.command").debug("hidden")
        for handler in package_logger.handlers:
            handler.flush()
        text = log_file.read_text()
        assert "INFO    [Rcafe0001 pid=4242] ffrun.process.command: Starting ffmpeg" in text
        assert "hidden" not in text
