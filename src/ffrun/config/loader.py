"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Explicit arguments (CLI flags)
2. Environment variables (FFRUN_*)
3. Config file (~/.ffrun/config.toml)
4. Default values

Environment variables:
- FFRUN_CONFIG_PATH: Path to config file (overrides default location)
- FFRUN_FFMPEG_PATH: ffmpeg executable, or the directory holding it
- FFRUN_FFPROBE_PATH: ffprobe executable, or the directory holding it
- FFRUN_LOG_LEVEL: debug, info, warning or error
- FFRUN_LOG_FILE: Log file path
- FFRUN_LOG_FORMAT: text or json
- FFRUN_LOG_STDERR: Also log to stderr when a log file is set
- FFRUN_LOG_MAX_BYTES: Size at which the log file is rotated
- FFRUN_LOG_BACKUP_COUNT: Number of rotated log files to keep
- FFRUN_QUERY_TIMEOUT: Seconds allowed for capability queries
- FFRUN_KILL_SIGNAL: Signal name used to cancel runs
"""

from __future__ import annotations

import logging
import threading
import tomllib
from pathlib import Path
from typing import Any

from ffrun.config.env import EnvReader
from ffrun.config.models import FFrunConfig, LoggingConfig, RunConfig, ToolPathsConfig
from ffrun.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".ffrun"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# Cache for loaded config files (path -> (parsed dict, mtime))
_config_cache: dict[Path, tuple[dict[str, Any], float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Get the config file path, honoring FFRUN_CONFIG_PATH."""
    env = env or EnvReader()
    return env.get_path("CONFIG_PATH") or DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from a TOML file.

    Results are cached and reloaded when the file's mtime changes.

    Args:
        path: Path to config file. If None, uses the default location.
        strict: Raise ConfigurationError on parse failures instead of
            returning an empty dict.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist.
    """
    path = path or get_default_config_path()
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        return {}

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == mtime:
            return cached[0]

        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            if strict:
                raise ConfigurationError(f"Invalid config file {path}: {e}") from e
            logger.warning("Ignoring invalid config file %s: %s", path, e)
            return {}

        _config_cache[path] = (data, mtime)
        return data


def clear_config_cache() -> None:
    """Forget every cached config file."""
    with _config_cache_lock:
        _config_cache.clear()


def _path(value: Any) -> Path | None:
    return Path(value).expanduser() if value else None


def _first(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def get_config(
    config_path: Path | None = None,
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    log_level: str | None = None,
    log_format: str | None = None,
    log_file: Path | None = None,
    env: EnvReader | None = None,
) -> FFrunConfig:
    """Build the effective configuration.

    Args:
        config_path: Config file to read instead of the default one.
        ffmpeg_path: Explicit ffmpeg path.
        ffprobe_path: Explicit ffprobe path.
        log_level: Explicit log level.
        log_format: Explicit log format.
        log_file: Explicit log file.
        env: Environment reader, for testing.

    Raises:
        ConfigurationError: If a resulting value is invalid.
    """
    env = env or EnvReader()
    data = load_config_file(config_path or get_default_config_path(env))
    tools = data.get("tools", {})
    log = data.get("logging", {})
    run = data.get("run", {})

    tool_paths = ToolPathsConfig(
        ffmpeg=_first(
            ffmpeg_path, env.get_path("FFMPEG_PATH"), _path(tools.get("ffmpeg"))
        ),
        ffprobe=_first(
            ffprobe_path, env.get_path("FFPROBE_PATH"), _path(tools.get("ffprobe"))
        ),
    )
    logging_config = LoggingConfig(
        level=_first(
            log_level, env.get_str("LOG_LEVEL"), log.get("level"), "warning"
        ),
        file=_first(log_file, env.get_path("LOG_FILE"), _path(log.get("file"))),
        format=_first(
            log_format, env.get_str("LOG_FORMAT"), log.get("format"), "text"
        ),
        include_stderr=bool(
            _first(env.get_bool("LOG_STDERR"), log.get("include_stderr"), False)
        ),
        max_bytes=int(
            _first(env.get_int("LOG_MAX_BYTES"), log.get("max_bytes"), 10_485_760)
        ),
        backup_count=int(
            _first(env.get_int("LOG_BACKUP_COUNT"), log.get("backup_count"), 5)
        ),
    )
    run_config = RunConfig(
        query_timeout=float(
            _first(env.get_float("QUERY_TIMEOUT"), run.get("query_timeout"), 30.0)
        ),
        kill_signal=_first(
            env.get_str("KILL_SIGNAL"), run.get("kill_signal"), "SIGINT"
        ),
    )
    return FFrunConfig(tools=tool_paths, logging=logging_config, run=run_config)
