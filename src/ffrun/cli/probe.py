"""The probe command."""

from __future__ import annotations

import json

import click

from ffrun.cli.output import fail
from ffrun.config import FFrunConfig
from ffrun.exceptions import FFrunError
from ffrun.probe import probe
from ffrun.tools import require_tool


@click.command("probe")
@click.argument("url", required=False, default="")
@click.option(
    "--option",
    "-o",
    "options",
    multiple=True,
    help="ffprobe option as a literal string, e.g. '-show_frames'. Repeatable.",
)
@click.pass_context
def probe_command(ctx: click.Context, url: str, options: tuple[str, ...]) -> None:
    """Print ffprobe's JSON description of URL.

    Without URL, the program and library versions are printed.
    """
    config: FFrunConfig = ctx.obj["config"]
    try:
        executable = require_tool("ffprobe", tools=config.tools)
        document = probe(
            url or None,
            " ".join(options) or None,
            executable=executable,
            timeout=config.run.query_timeout,
        )
    except FFrunError as e:
        fail(str(e))
    click.echo(json.dumps(document, indent=2))
