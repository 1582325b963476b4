"""Handle for a running ffmpeg process.

A run owns a few daemon threads:

- the stderr reader, which feeds the StderrMonitor in arrival order
- an optional stdin forwarder copying a caller stream into ffmpeg
- an optional stdout forwarder copying ffmpeg output into a caller stream
- the waiter, which reconciles the exit status once the process ends

Every event goes through one queue. The waiter joins the stderr reader
and stdout forwarder before queueing Failed and Finished, so Finished is
always last. Listeners run in the thread that consumes the queue through
``events()`` or ``wait()``.
"""

from __future__ import annotations

import codecs
import contextvars
import logging
import queue
import signal as signals
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
from collections.abc import Callable, Iterator
from typing import BinaryIO

from ffrun.exceptions import FFmpegError
from ffrun.logging import run_context
from ffrun.parsers.stderr import received_signal, signal_name
from ffrun.process.events import Event, Failed, Finished, Listeners, Started
from ffrun.process.monitor import StderrMonitor

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _read_chunk(stream: BinaryIO) -> bytes:
    read1 = getattr(stream, "read1", None)
    if read1 is not None:
        return read1(CHUNK_SIZE)
    return stream.read(CHUNK_SIZE)


class FFmpegRun:
    """A spawned ffmpeg process and its event channel.

    Created by ``FFmpegCommand.run()``; not meant to be built directly.
    """

    STDERR_DRAIN_TIMEOUT: float = 5.0  # Timeout for draining stderr after exit

    def __init__(
        self,
        process: subprocess.Popen,
        command: list[str],
        monitor: StderrMonitor,
        listeners: Listeners,
        run_id: str,
        stdin_source: BinaryIO | None = None,
        stdout_sink: BinaryIO | None = None,
        keep_open: bool = False,
    ) -> None:
        self.run_id = run_id
        self.command = command
        self.errors: list[FFmpegError] = []
        self._process = process
        self._monitor = monitor
        self._listeners = listeners
        self._queue: queue.Queue[Event | None] = queue.Queue()
        self._lock = threading.Lock()
        self._exited = threading.Event()
        self._closed = False
        self._drained = False
        self._result: Finished | None = None
        self._stream_error: str | None = None

        self._emit(Started(pid=process.pid, command=command))

        self._stderr_thread: threading.Thread | None = None
        self._stdout_thread: threading.Thread | None = None
        if process.stderr is not None:
            self._stderr_thread = self._start_thread("stderr", self._read_stderr)
        if stdin_source is not None:
            self._start_thread("stdin", lambda: self._forward_stdin(stdin_source))
        if stdout_sink is not None:
            self._stdout_thread = self._start_thread(
                "stdout", lambda: self._forward_stdout(stdout_sink, keep_open)
            )
        self._start_thread("wait", self._wait)

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def pid(self) -> int:
        """Process id of ffmpeg."""
        return self._process.pid

    @property
    def process(self) -> subprocess.Popen:
        """The underlying process."""
        return self._process

    @property
    def stdin(self) -> BinaryIO | None:
        """ffmpeg's stdin pipe, when an input uses a stdin url."""
        return self._process.stdin

    @property
    def stdout(self) -> BinaryIO | None:
        """ffmpeg's stdout pipe, when an output uses a stdout url."""
        return self._process.stdout

    @property
    def log(self) -> str:
        """Stderr text captured so far."""
        return self._monitor.log

    @property
    def finished(self) -> bool:
        """True once the process has exited."""
        return self._exited.is_set()

    def kill(self, sig: int = signals.SIGTERM) -> None:
        """Send a signal to ffmpeg.

        The run is only over once Finished is delivered; its ``signal``
        may differ from the one sent when ffmpeg shuts down on its own.
        """
        if self._process.poll() is None:
            logger.debug("Sending %s to ffmpeg (pid %d)", signal_name(sig), self.pid)
            self._process.send_signal(sig)

    def events(self, timeout: float | None = None) -> Iterator[Event]:
        """Yield events in order, calling listeners for each one.

        Blocks until the next event arrives. The iteration ends after
        Finished.

        Args:
            timeout: Maximum seconds to wait for each event.

        Raises:
            TimeoutError: If no event arrives in time.
        """
        while not self._drained:
            try:
                event = self._queue.get(timeout=timeout)
            except queue.Empty:
                raise TimeoutError(
                    f"No ffmpeg event within {timeout} seconds"
                ) from None
            if event is None:
                self._drained = True
                return
            if isinstance(event, Finished):
                self._result = event
            with run_context(self.run_id, self.pid):
                self._listeners.dispatch(event)
            yield event

    def wait(self, timeout: float | None = None, check: bool = False) -> Finished:
        """Consume every remaining event and return Finished.

        Args:
            timeout: Maximum seconds to wait for each event.
            check: Raise the first error of the run instead of returning.

        Raises:
            FFmpegError: If check is set and the run failed.
            TimeoutError: If no event arrives in time.
        """
        for _ in self.events(timeout=timeout):
            pass
        if self._result is None:
            raise FFmpegError(
                "ffmpeg run was drained without a Finished event",
                self.command,
                self.log,
            )
        if check and self.errors:
            raise self.errors[0]
        return self._result

    def __enter__(self) -> FFmpegRun:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if exc_info[0] is not None:
            self.kill()
        self.wait()

    # =========================================================================
    # Threads
    # =========================================================================

    def _start_thread(self, name: str, target: Callable[[], None]) -> threading.Thread:
        # Threads inherit the run id set by FFmpegCommand.run()
        context = contextvars.copy_context()
        thread = threading.Thread(
            target=context.run,
            args=(target,),
            name=f"ffrun-{self.run_id}-{name}",
            daemon=True,
        )
        thread.start()
        return thread

    def _emit(self, event: Event) -> None:
        with self._lock:
            if self._closed:
                logger.debug("Dropping %s event after end of run", event.name)
                return
            self._queue.put(event)

    def _read_stderr(self) -> None:
        """Read stderr chunks and feed them to the monitor."""
        assert self._process.stderr is not None
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                chunk = _read_chunk(self._process.stderr)
                if not chunk:
                    break
                for event in self._monitor.feed(decoder.decode(chunk)):
                    self._emit(event)
            for event in self._monitor.feed(decoder.decode(b"", final=True)):
                self._emit(event)
        except (ValueError, OSError) as e:
            # Pipe closed or process terminated
            logger.debug("Stderr reader stopped: %s", e)
        finally:
            for event in self._monitor.close():
                self._emit(event)

    def _forward_stdin(self, source: BinaryIO) -> None:
        """Copy a caller stream into ffmpeg's stdin until end of stream."""
        sink = self._process.stdin
        assert sink is not None
        try:
            while not self._exited.is_set():
                try:
                    chunk = _read_chunk(source)
                except Exception as e:
                    self._stream_failed(f"Input stream error: {e}")
                    return
                if not chunk:
                    break
                try:
                    sink.write(chunk)
                    sink.flush()
                except (BrokenPipeError, ValueError, OSError) as e:
                    logger.debug("ffmpeg stdin closed early: %s", e)
                    return
        finally:
            try:
                sink.close()
            except (BrokenPipeError, OSError) as e:
                logger.debug("Closing ffmpeg stdin failed: %s", e)

    def _forward_stdout(self, sink: BinaryIO, keep_open: bool) -> None:
        """Copy ffmpeg's stdout into a caller stream."""
        source = self._process.stdout
        assert source is not None
        try:
            while True:
                chunk = _read_chunk(source)
                if not chunk:
                    break
                try:
                    sink.write(chunk)
                except Exception as e:
                    self._stream_failed(f"Output stream error: {e}")
                    source.close()
                    return
        except (ValueError, OSError) as e:
            logger.debug("Stdout reader stopped: %s", e)
        finally:
            self._finish_sink(sink, keep_open)

    def _finish_sink(self, sink: BinaryIO, keep_open: bool) -> None:
        try:
            if keep_open:
                sink.flush()
            else:
                sink.close()
        except Exception as e:
            logger.debug("Finishing output stream failed: %s", e)

    def _stream_failed(self, message: str) -> None:
        """Record a caller stream failure and interrupt ffmpeg."""
        if self._exited.is_set():
            logger.debug("Ignoring stream error after exit: %s", message)
            return
        with self._lock:
            if self._stream_error is None:
                self._stream_error = message
        logger.warning("%s; interrupting ffmpeg", message)
        self.kill(signals.SIGINT)

    def _wait(self) -> None:
        """Wait for exit, then emit errors and Finished."""
        returncode = self._process.wait()
        self._exited.set()
        for thread in (self._stderr_thread, self._stdout_thread):
            if thread is None:
                continue
            thread.join(timeout=self.STDERR_DRAIN_TIMEOUT)
            if thread.is_alive():
                logger.warning(
                    "%s thread did not finish after exit; late output is dropped",
                    thread.name,
                )

        error, signal = self._reconcile(returncode)
        logger.info(
            "ffmpeg exited (code=%s, signal=%s)",
            returncode if returncode >= 0 else None,
            signal,
        )
        if error is not None:
            self.errors.append(error)
            self._emit(Failed(error))
        self._emit(
            Finished(
                returncode=returncode if returncode >= 0 else None,
                signal=signal,
                process=self._process,
            )
        )
        with self._lock:
            self._closed = True
            self._queue.put(None)

    def _reconcile(self, returncode: int) -> tuple[FFmpegError | None, str | None]:
        """Turn exit status and stream errors into at most one error.

        Returns:
            Tuple of (error, effective signal name).
        """
        signal = signal_name(-returncode) if returncode < 0 else None
        log = self._monitor.log
        exit_error: FFmpegError | None = None

        if returncode > 0:
            reported = received_signal(self._monitor.error_message)
            if reported:
                signal = reported
            else:
                message = self._monitor.error_message or (
                    f"ffmpeg exited with code {returncode}"
                )
                exit_error = FFmpegError(message, self.command, log)

        if self._stream_error is not None:
            return FFmpegError(self._stream_error, self.command, log), signal
        if exit_error is not None:
            return exit_error, signal
        if signal is not None:
            message = f"ffmpeg was terminated with signal {signal}"
            return FFmpegError(message, self.command, log), signal
        return None, None
