"""Typed access to the FFRUN_* environment variables.

Keys are given without the ``FFRUN_`` prefix, so ``get_float("QUERY_TIMEOUT")``
reads ``FFRUN_QUERY_TIMEOUT``. An empty variable counts as unset. A value
that cannot be converted raises ConfigurationError naming the variable,
the same way a bad value in the config file does.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

from ffrun.exceptions import ConfigurationError

T = TypeVar("T")

ENV_PREFIX = "FFRUN_"

_TRUE = frozenset(("1", "true", "yes", "on"))
_FALSE = frozenset(("0", "false", "no", "off"))


class EnvReader:
    """Reader of ``FFRUN_*`` variables.

    Example:
        reader = EnvReader(env={"FFRUN_QUERY_TIMEOUT": "5"})
        reader.get_float("QUERY_TIMEOUT")  # 5.0
        reader.get_float("KILL_TIMEOUT")  # None
    """

    def __init__(
        self, env: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> None:
        """Initialize the reader.

        Args:
            env: Mapping to read instead of os.environ.
            prefix: Prefix added to every key.
        """
        self._env: Mapping[str, str] = env if env is not None else os.environ
        self.prefix = prefix

    def name(self, key: str) -> str:
        """The full variable name for a key."""
        return self.prefix + key

    def get_str(self, key: str) -> str | None:
        value = self._env.get(self.name(key), "").strip()
        return value or None

    def get_int(self, key: str) -> int | None:
        return self._convert(key, int, "an integer")

    def get_float(self, key: str) -> float | None:
        return self._convert(key, float, "a number")

    def get_bool(self, key: str) -> bool | None:
        """Read a flag spelled 1/0, true/false, yes/no or on/off."""
        return self._convert(key, _parse_bool, "a boolean")

    def get_path(self, key: str) -> Path | None:
        value = self.get_str(key)
        return Path(value).expanduser() if value else None

    def _convert(self, key: str, convert: Callable[[str], T], kind: str) -> T | None:
        value = self.get_str(key)
        if value is None:
            return None
        try:
            return convert(value)
        except ValueError as e:
            raise ConfigurationError(
                f"{self.name(key)} must be {kind}, got {value!r}"
            ) from e


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(value)
