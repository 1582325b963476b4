"""Memoization of capability query results.

Each query spawns ffmpeg, so parsed results are kept for the lifetime of
the owning Capabilities session. Keys are either a listing name
(``"codecs"``) or an ``(item_type, name)`` pair for detail queries
(``("encoder", "libx264")``).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

CacheKey = str | tuple[str, str]
T = TypeVar("T")

_MISSING = object()


class CapabilityCache:
    """Thread-safe store of parsed capability data.

    A value is computed at most once per key. The lock is held while the
    value is computed, so concurrent callers asking for the same key wait
    for the first query instead of spawning ffmpeg again.
    """

    def __init__(self) -> None:
        self._data: dict[CacheKey, Any] = {}
        self._lock = threading.RLock()

    def get_or_create(self, key: CacheKey, factory: Callable[[], T]) -> T:
        """Return the cached value, computing and storing it if absent.

        Exceptions raised by the factory propagate and nothing is stored.
        """
        with self._lock:
            value = self._data.get(key, _MISSING)
            if value is _MISSING:
                logger.debug("Capability cache miss: %s", key)
                value = factory()
                self._data[key] = value
            return value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
