"""Assembly and execution of ffmpeg command lines."""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import uuid
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from ffrun.exceptions import ConfigurationError, FFmpegError, ToolNotFoundError
from ffrun.logging import run_context
from ffrun.options import (
    EncodingPolicy,
    OptionsInput,
    exclusive_flag,
    opts_to_args,
    removes,
)
from ffrun.parsers.stderr import extract_error
from ffrun.process.endpoints import Input, Output, StreamEndpoint, as_input, as_output
from ffrun.process.events import Listener, Listeners
from ffrun.process.monitor import StderrMonitor
from ffrun.process.run import FFmpegRun

logger = logging.getLogger(__name__)

# Overwrite outputs and hide the banner unless told otherwise
GLOBAL_POLICY = EncodingPolicy(
    default={"y": None, "hide_banner": None},
    specs={
        "y": exclusive_flag("n"),
        "n": exclusive_flag("y"),
        "show_banner": removes("hide_banner"),
    },
)
INPUT_POLICY = EncodingPolicy()
OUTPUT_POLICY = EncodingPolicy(ignore=frozenset({"keepopen"}))

Spawner = Callable[[list[str], dict[str, Any]], subprocess.Popen]


def default_spawner(args: list[str], options: dict[str, Any]) -> subprocess.Popen:
    """Spawn a process with subprocess.Popen."""
    return subprocess.Popen(args, **options)  # nosec B603


def _force_pipe(options: dict[str, Any], stream: str) -> None:
    current = options.get(stream, subprocess.PIPE)
    if current != subprocess.PIPE:
        logger.warning("Forcing %s of ffmpeg to pipe mode", stream)
    options[stream] = subprocess.PIPE


class FFmpegCommand:
    """An ffmpeg invocation built from global options, inputs and outputs.

    Example:
        cmd = FFmpegCommand(
            inputs=[Input("in.mkv")],
            outputs=[Output("out.mp4", {"c:v": "libx264", "crf": 20})],
        )
        cmd.on("progress", lambda event: print(event.record.time))
        finished = cmd.run().wait()
    """

    def __init__(
        self,
        inputs: Iterable[Any] = (),
        outputs: Iterable[Any] = (),
        global_options: OptionsInput = None,
        spawn_options: Mapping[str, Any] | None = None,
        executable: str | Path | None = None,
        spawner: Spawner | None = None,
    ) -> None:
        """Initialize the command.

        Args:
            inputs: Input descriptors, urls, streams or ``{url, options}``
                mappings.
            outputs: Output descriptors, urls, streams or mappings.
            global_options: Options placed before the inputs.
            spawn_options: Extra keyword arguments for the spawner
                (``cwd``, ``env``, ``stdin``, ``stdout``, ``stderr``).
            executable: ffmpeg to run. Resolved through configuration
                when omitted.
            spawner: Replacement for subprocess.Popen.
        """
        self.inputs: list[Input] = [as_input(value) for value in inputs]
        self.outputs: list[Output] = [as_output(value) for value in outputs]
        self.global_options = global_options
        self.spawn_options: dict[str, Any] = dict(spawn_options or {})
        self._executable = Path(executable) if executable else None
        self._spawner = spawner or default_spawner
        self._listeners = Listeners()

    # =========================================================================
    # Construction
    # =========================================================================

    def add_input(self, url: Any, options: OptionsInput = None) -> FFmpegCommand:
        """Append an input; returns self for chaining."""
        self.inputs.append(Input(url, options))
        return self

    def add_output(self, url: Any, options: OptionsInput = None) -> FFmpegCommand:
        """Append an output; returns self for chaining."""
        self.outputs.append(Output(url, options))
        return self

    def on(self, event: str, callback: Listener) -> FFmpegCommand:
        """Register an event listener; returns self for chaining.

        Event names are start, codec_data, progress, error and end.
        """
        self._listeners.on(event, callback)
        return self

    def off(self, event: str, callback: Listener) -> FFmpegCommand:
        """Remove an event listener; returns self for chaining."""
        self._listeners.off(event, callback)
        return self

    @property
    def executable(self) -> Path:
        """Path of the ffmpeg executable.

        Raises:
            ToolNotFoundError: If ffmpeg cannot be located.
        """
        if self._executable is None:
            from ffrun.tools.locator import require_tool

            self._executable = require_tool("ffmpeg")
        return self._executable

    def _stdio_endpoints(self) -> tuple[Input | None, Output | None]:
        """Find the input reading stdin and the output writing stdout.

        Raises:
            ConfigurationError: If more than one of either exists.
        """
        stdin_inputs = [item for item in self.inputs if item.uses_stdin]
        stdout_outputs = [item for item in self.outputs if item.uses_stdout]
        if len(stdin_inputs) > 1:
            raise ConfigurationError("Only one input source may be set to stdin")
        if len(stdout_outputs) > 1:
            raise ConfigurationError(
                "Only one output destination may be set to stdout"
            )
        return (
            stdin_inputs[0] if stdin_inputs else None,
            stdout_outputs[0] if stdout_outputs else None,
        )

    def build_args(self) -> list[str]:
        """Build the argument list, without the executable.

        Raises:
            ConfigurationError: On option conflicts or stdio conflicts.
        """
        self._stdio_endpoints()
        args = opts_to_args(self.global_options, GLOBAL_POLICY)
        for item in self.inputs:
            opts_to_args(item.options, INPUT_POLICY, args)
            args.extend(["-i", item.target])
        for item in self.outputs:
            opts_to_args(item.options, OUTPUT_POLICY, args)
            args.append(item.target)
        return args

    def command_line(self) -> list[str]:
        """The full command line, executable first."""
        return [str(self.executable), *self.build_args()]

    def _popen_options(
        self, stdin_input: Input | None, stdout_output: Output | None, monitor: bool
    ) -> dict[str, Any]:
        options = dict(self.spawn_options)
        if stdin_input is not None:
            _force_pipe(options, "stdin")
        else:
            options.setdefault("stdin", subprocess.DEVNULL)
        if stdout_output is not None:
            _force_pipe(options, "stdout")
        else:
            options.setdefault("stdout", subprocess.DEVNULL)
        if monitor:
            _force_pipe(options, "stderr")
        else:
            options.setdefault("stderr", subprocess.PIPE)
        return options

    def _spawn(self, args: list[str], options: dict[str, Any]) -> subprocess.Popen:
        try:
            return self._spawner(args, options)
        except (FileNotFoundError, PermissionError) as e:
            raise ToolNotFoundError("ffmpeg", f"Cannot execute {args[0]}: {e}") from e

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self, monitor: bool | None = None) -> FFmpegRun:
        """Spawn ffmpeg and return the run handle.

        Args:
            monitor: Parse the stderr header and progress lines. Defaults to
                True when a progress or codec_data listener is registered.

        Returns:
            The run; consume it with ``wait()`` or ``events()``.

        Raises:
            ConfigurationError: If the command is invalid. Nothing is spawned.
            ToolNotFoundError: If ffmpeg cannot be executed.
        """
        stdin_input, stdout_output = self._stdio_endpoints()
        if monitor is None:
            monitor = self._listeners.wants("progress", "codec_data")
        args = self.command_line()
        options = self._popen_options(stdin_input, stdout_output, monitor)

        run_id = uuid.uuid4().hex[:8]
        with run_context(run_id):
            logger.info("Starting ffmpeg: %s", " ".join(args))
            process = self._spawn(args, options)
        # The run threads copy this context, pid included
        with run_context(run_id, process.pid):
            return FFmpegRun(
                process,
                args,
                StderrMonitor(monitored=monitor),
                self._listeners,
                run_id,
                stdin_source=_stream_of(stdin_input),
                stdout_sink=_stream_of(stdout_output),
                keep_open=stdout_output.keep_open if stdout_output else False,
            )

    def run_sync(
        self, timeout: float | None = None, check: bool = False
    ) -> subprocess.CompletedProcess:
        """Run ffmpeg to completion, blocking the caller.

        Stream endpoints are supported: an input stream is read fully before
        ffmpeg starts and the output is written to the output stream.

        Args:
            timeout: Maximum seconds to wait.
            check: Raise FFmpegError on a non-zero exit code.

        Returns:
            The completed process with stdout and stderr as bytes.

        Raises:
            ConfigurationError: If the command is invalid.
            ToolNotFoundError: If ffmpeg cannot be executed.
            subprocess.TimeoutExpired: If the timeout expires.
        """
        stdin_input, stdout_output = self._stdio_endpoints()
        args = self.command_line()
        options = dict(self.spawn_options)
        options.setdefault("stderr", subprocess.PIPE)

        source = _stream_of(stdin_input)
        if source is not None:
            options.pop("stdin", None)
            options["input"] = source.read()
        elif stdin_input is None:
            options.setdefault("stdin", subprocess.DEVNULL)
        sink = _stream_of(stdout_output)
        if sink is not None:
            options["stdout"] = subprocess.PIPE

        logger.info("Running ffmpeg: %s", " ".join(args))
        try:
            result = subprocess.run(args, timeout=timeout, **options)  # nosec B603
        except (FileNotFoundError, PermissionError) as e:
            raise ToolNotFoundError("ffmpeg", f"Cannot execute {args[0]}: {e}") from e

        if sink is not None and result.stdout:
            sink.write(result.stdout)
            if stdout_output is not None and not stdout_output.keep_open:
                sink.close()
        if check and result.returncode != 0:
            stderr = (result.stderr or b"").decode("utf-8", errors="replace")
            message = extract_error(stderr) or (
                f"ffmpeg exited with code {result.returncode}"
            )
            raise FFmpegError(message, args, stderr)
        return result


def _stream_of(item: Input | Output | None) -> Any:
    if item is not None and isinstance(item.endpoint, StreamEndpoint):
        return item.endpoint.stream
    return None
