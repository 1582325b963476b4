"""JSON lines output for log records."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus the ones formatting and
# RunContextFilter add. Anything else came in through ``extra=``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "run_id",
    "run_pid",
    "run_tag",
}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Return the attributes passed to the logging call with ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """Format each record as one JSON object.

    Keys are ``timestamp`` (ISO-8601, UTC), ``level``, ``logger`` (omitted
    for the root logger), ``message``, then ``context`` and ``exception``
    when there is something to put in them. ``context`` holds the
    ``extra=`` attributes and, inside an ffmpeg run, ``run_id`` and ``pid``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
        }
        if record.name != "root":
            entry["logger"] = record.name
        entry["message"] = record.getMessage()

        context = record_extras(record)
        run_id = getattr(record, "run_id", None)
        if run_id:
            context["run_id"] = run_id
            pid = getattr(record, "run_pid", None)
            if pid is not None:
                context["pid"] = pid
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        elif record.stack_info:
            entry["exception"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)
