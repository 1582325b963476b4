"""The run command: execute a YAML job file."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from ffrun.cli.output import fail
from ffrun.config import FFrunConfig
from ffrun.exceptions import FFrunError
from ffrun.jobs import load_job
from ffrun.process import CodecData, Finished, Progress
from ffrun.tools import require_tool

logger = logging.getLogger(__name__)


class ProgressPrinter:
    """Render progress events on one stderr line."""

    def __init__(self) -> None:
        self.duration: float | None = None
        self._shown = False

    def codec_data(self, event: CodecData) -> None:
        durations = [dump.duration for dump in event.inputs if dump.duration]
        self.duration = max(durations) if durations else None

    def progress(self, event: Progress) -> None:
        record = event.record
        parts = []
        if self.duration:
            parts.append(f"{record.get_percent(self.duration):5.1f}%")
        if record.frame is not None:
            parts.append(f"frame={record.frame}")
        if isinstance(record.time, (int, float)):
            parts.append(f"time={record.time:.2f}s")
        if record.speed is not None:
            parts.append(f"speed={record.speed}x")
        click.echo("\r" + " ".join(parts), nl=False, err=True)
        self._shown = True

    def end(self, event: Finished) -> None:
        if self._shown:
            click.echo(err=True)


@click.command("run")
@click.argument(
    "job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option("--quiet", "-q", is_flag=True, help="Do not render progress.")
@click.pass_context
def run_command(ctx: click.Context, job_file: Path, quiet: bool) -> None:
    """Run the ffmpeg job described by JOB_FILE.

    An input or output url of '-' is bound to this command's stdin or
    stdout. The exit code is ffmpeg's exit code, or 1 when ffmpeg was
    stopped by a signal.
    """
    config: FFrunConfig = ctx.obj["config"]
    try:
        job = load_job(job_file)
        executable = require_tool(
            "ffmpeg", ctx.obj.get("ffmpeg_override"), tools=config.tools
        )
        command = job.to_command(
            stdin=sys.stdin.buffer,
            stdout=sys.stdout.buffer,
            executable=executable,
        )
        if not quiet:
            printer = ProgressPrinter()
            command.on("codec_data", printer.codec_data)
            command.on("progress", printer.progress)
            command.on("end", printer.end)
        run = command.run()
    except FFrunError as e:
        fail(str(e))

    try:
        finished = run.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping ffmpeg")
        run.kill(config.run.kill_signal_number)
        finished = run.wait()

    for error in run.errors:
        click.echo(f"Error: {error}", err=True)
    if finished.returncode:
        sys.exit(finished.returncode)
    if run.errors or finished.signal:
        sys.exit(1)
