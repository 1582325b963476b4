"""Command line interface for ffrun."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ffrun.config import FFrunConfig, get_config
from ffrun.exceptions import ConfigurationError
from ffrun.logging import configure_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="ffrun")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.ffrun/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: warning).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--ffmpeg",
    "ffmpeg_path",
    type=click.Path(path_type=Path),
    default=None,
    help="ffmpeg executable or the directory holding it.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    ffmpeg_path: Path | None,
) -> None:
    """ffrun - build, run and inspect ffmpeg commands."""
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path=config_path,
                ffmpeg_path=ffmpeg_path,
                log_level=log_level,
                log_format="json" if log_json else None,
                log_file=log_file,
            )
        except ConfigurationError as e:
            raise click.UsageError(str(e)) from e
    ctx.obj["ffmpeg_override"] = ffmpeg_path

    config: FFrunConfig = ctx.obj["config"]
    configure_logging(config.logging)
    logger.debug("ffrun starting: subcommand=%s", ctx.invoked_subcommand)


# Defer import to avoid circular dependency
def _register_commands() -> None:
    from ffrun.cli.query import caps_command, info_command, version_command
    from ffrun.cli.probe import probe_command
    from ffrun.cli.run import run_command

    main.add_command(version_command)
    main.add_command(caps_command)
    main.add_command(info_command)
    main.add_command(probe_command)
    main.add_command(run_command)


_register_commands()
