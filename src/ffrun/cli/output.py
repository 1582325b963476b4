"""Output helpers shared by the CLI commands."""

from __future__ import annotations

import dataclasses
import json
import sys
from typing import Any, NoReturn

import click
import yaml


def to_jsonable(value: Any) -> Any:
    """Convert parsed records into plain JSON-compatible data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    return value


def echo_json(value: Any) -> None:
    click.echo(json.dumps(to_jsonable(value), indent=2))


def echo_yaml(value: Any) -> None:
    click.echo(
        yaml.safe_dump(to_jsonable(value), sort_keys=False, allow_unicode=True),
        nl=False,
    )


def echo_table(entries: dict[str, Any]) -> None:
    """Print ``name  description`` rows for a listing."""
    width = max((len(name) for name in entries), default=0)
    for name, entry in entries.items():
        description = getattr(entry, "description", entry)
        click.echo(f"{name:<{width}}  {description}")


def fail(message: str, code: int = 1) -> NoReturn:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)
