"""Tests for configuration models."""

import signal

import pytest

from ffrun.config import FFrunConfig, LoggingConfig, RunConfig
from ffrun.exceptions import ConfigurationError


class TestLoggingConfig:
    """Tests for LoggingConfig validation."""

    def test_defaults(self) -> None:
        """Should default to warning level text logs on stderr."""
        config = LoggingConfig()
        assert config.level == "warning"
        assert config.file is None
        assert config.format == "text"
        assert config.max_bytes == 10_485_760
        assert config.backup_count == 5

    def test_level_is_case_insensitive(self) -> None:
        """Should accept levels in any case."""
        assert LoggingConfig(level="DEBUG").level == "DEBUG"

    def test_invalid_level(self) -> None:
        """Should reject unknown levels."""
        with pytest.raises(ConfigurationError, match="level must be one of"):
            LoggingConfig(level="verbose")

    def test_invalid_format(self) -> None:
        """Should reject unknown formats."""
        with pytest.raises(ConfigurationError, match="format must be one of"):
            LoggingConfig(format="xml")


class TestRunConfig:
    """Tests for RunConfig validation."""

    def test_kill_signal_number(self) -> None:
        """Should resolve the signal name."""
        assert RunConfig().kill_signal_number == signal.SIGINT
        assert RunConfig(kill_signal="SIGTERM").kill_signal_number == signal.SIGTERM

    def test_unknown_signal(self) -> None:
        """Should reject unknown signal names."""
        with pytest.raises(ConfigurationError, match="Unknown signal"):
            RunConfig(kill_signal="SIGNOPE")

    @pytest.mark.parametrize("timeout", [0, -1.5])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        """Should reject non-positive timeouts."""
        with pytest.raises(ConfigurationError, match="query_timeout must be positive"):
            RunConfig(query_timeout=timeout)


class TestFFrunConfig:
    """Tests for FFrunConfig."""

    def test_sections_are_independent(self) -> None:
        """Should create fresh sections per instance."""
        first, second = FFrunConfig(), FFrunConfig()
        first.tools.ffmpeg = "x"
        assert second.tools.ffmpeg is None
