"""ffrun - build, run and inspect ffmpeg command lines.

Example:
    from ffrun import FFmpegCommand, Output

    cmd = FFmpegCommand(
        inputs=["input.mkv"],
        outputs=[Output("output.mp4", {"c:v": "libx264", "crf": 20})],
        global_options="-loglevel info",
    )
    cmd.on("progress", lambda event: print(event.record.time))
    cmd.run().wait(check=True)
"""

from ffrun.exceptions import (
    CapabilityParseError,
    ConfigurationError,
    FFmpegError,
    FFrunError,
    JobFileError,
    OptionSyntaxError,
    ToolNotFoundError,
    UnknownCapabilityError,
)
from ffrun.options import FilterSpec, filter_graph, opts_to_args, parse_opts
from ffrun.probe import probe
from ffrun.process import FFmpegCommand, FFmpegRun, Input, Output
from ffrun.tools import Capabilities, CapabilityCache

__version__ = "0.3.0"

__all__ = [
    "Capabilities",
    "CapabilityCache",
    "CapabilityParseError",
    "ConfigurationError",
    "FFmpegCommand",
    "FFmpegError",
    "FFmpegRun",
    "FFrunError",
    "FilterSpec",
    "Input",
    "JobFileError",
    "OptionSyntaxError",
    "Output",
    "ToolNotFoundError",
    "UnknownCapabilityError",
    "filter_graph",
    "opts_to_args",
    "parse_opts",
    "probe",
]
