"""Spawning ffmpeg and following its progress."""

from ffrun.process.command import (
    GLOBAL_POLICY,
    OUTPUT_POLICY,
    FFmpegCommand,
    default_spawner,
)
from ffrun.process.endpoints import Input, Output, StreamEndpoint, UrlEndpoint
from ffrun.process.events import (
    CodecData,
    Event,
    Failed,
    Finished,
    Listeners,
    Progress,
    Started,
)
from ffrun.process.monitor import Phase, StderrMonitor
from ffrun.process.run import FFmpegRun

__all__ = [
    "GLOBAL_POLICY",
    "OUTPUT_POLICY",
    "CodecData",
    "Event",
    "FFmpegCommand",
    "FFmpegRun",
    "Failed",
    "Finished",
    "Input",
    "Listeners",
    "Output",
    "Phase",
    "Progress",
    "Started",
    "StderrMonitor",
    "StreamEndpoint",
    "UrlEndpoint",
    "default_spawner",
]
