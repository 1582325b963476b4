"""Configuration data models for ffrun."""

from __future__ import annotations

import signal
from dataclasses import dataclass, field
from pathlib import Path

from ffrun.exceptions import ConfigurationError


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    Each path may name the executable or the directory holding it. If not
    specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "warning"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ConfigurationError(
                f"level must be one of {sorted(valid_levels)}, got {self.level}"
            )
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ConfigurationError(
                f"format must be one of {sorted(valid_formats)}, got {self.format}"
            )


@dataclass
class RunConfig:
    """Configuration for running ffmpeg."""

    # Seconds allowed for capability and probe queries
    query_timeout: float = 30.0

    # Signal sent when a run is cancelled from the command line
    kill_signal: str = "SIGINT"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.query_timeout <= 0:
            raise ConfigurationError(
                f"query_timeout must be positive, got {self.query_timeout}"
            )
        if self.kill_signal not in signal.Signals.__members__:
            raise ConfigurationError(f"Unknown signal: {self.kill_signal}")

    @property
    def kill_signal_number(self) -> int:
        """The kill signal as a number."""
        return int(signal.Signals[self.kill_signal])


@dataclass
class FFrunConfig:
    """Main configuration for ffrun."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    run: RunConfig = field(default_factory=RunConfig)
