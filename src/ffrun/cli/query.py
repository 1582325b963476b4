"""Capability query commands: version, caps and info."""

from __future__ import annotations

import click

from ffrun.cli.output import echo_json, echo_table, echo_yaml, fail
from ffrun.config import FFrunConfig
from ffrun.exceptions import FFrunError, UnknownCapabilityError
from ffrun.tools import DETAIL_TYPES, LISTINGS, Capabilities, require_tool


def _capabilities(ctx: click.Context) -> Capabilities:
    config: FFrunConfig = ctx.obj["config"]
    try:
        executable = require_tool(
            "ffmpeg", ctx.obj.get("ffmpeg_override"), tools=config.tools
        )
    except FFrunError as e:
        fail(str(e))
    return Capabilities(executable, timeout=config.run.query_timeout)


@click.command("version")
@click.pass_context
def version_command(ctx: click.Context) -> None:
    """Print the ffmpeg version."""
    caps = _capabilities(ctx)
    try:
        click.echo(caps.version())
    except FFrunError as e:
        fail(str(e))


@click.command("caps")
@click.argument("name", type=click.Choice(LISTINGS))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
def caps_command(ctx: click.Context, name: str, json_output: bool) -> None:
    """Print a capability listing (codecs, filters, formats...)."""
    caps = _capabilities(ctx)
    try:
        listing = caps.listing(name)
    except FFrunError as e:
        fail(str(e))

    if json_output:
        echo_json(listing)
    elif isinstance(listing, dict):
        echo_table(listing)
    else:
        echo_yaml(listing)


@click.command("info")
@click.argument("item_type", metavar="TYPE", type=click.Choice(DETAIL_TYPES))
@click.argument("name")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
def info_command(
    ctx: click.Context, item_type: str, name: str, json_output: bool
) -> None:
    """Print the details of one demuxer, muxer, codec, filter or bsf.

    Exits with code 1 when ffmpeg does not know NAME.
    """
    caps = _capabilities(ctx)
    try:
        info = caps.info(item_type, name)
    except UnknownCapabilityError as e:
        fail(str(e).strip())
    except FFrunError as e:
        fail(str(e))

    if json_output:
        echo_json(info)
    else:
        echo_yaml(info)
