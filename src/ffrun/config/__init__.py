"""Configuration management for ffrun.

Precedence, highest first: explicit arguments, FFRUN_* environment
variables, the TOML config file, defaults.
"""

from ffrun.config.env import EnvReader
from ffrun.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from ffrun.config.models import FFrunConfig, LoggingConfig, RunConfig, ToolPathsConfig

__all__ = [
    "EnvReader",
    "FFrunConfig",
    "LoggingConfig",
    "RunConfig",
    "ToolPathsConfig",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
