"""Input and output descriptors.

An input or output target is either a URL (file path, network URL, or
one of ffmpeg's stdio aliases) or a live byte stream owned by the caller.
The two cases are distinct endpoint types, resolved once when the
descriptor is created.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Union

from ffrun.exceptions import ConfigurationError
from ffrun.options import OptionsInput, as_option_set

# URLs that make ffmpeg read from stdin / write to stdout
STDIN_URLS = frozenset(("-", "pipe:", "pipe:0"))
STDOUT_URLS = frozenset(("-", "pipe:", "pipe:1"))


@dataclass(frozen=True)
class UrlEndpoint:
    """A path or URL handed to ffmpeg as is."""

    url: str


@dataclass(frozen=True)
class StreamEndpoint:
    """A caller-owned binary stream wired to ffmpeg's stdin or stdout."""

    stream: BinaryIO


Endpoint = Union[UrlEndpoint, StreamEndpoint]


def _endpoint(value: Any, stream_method: str) -> Endpoint:
    if isinstance(value, (UrlEndpoint, StreamEndpoint)):
        return value
    if isinstance(value, (str, os.PathLike)):
        return UrlEndpoint(os.fspath(value))
    if hasattr(value, stream_method):
        return StreamEndpoint(value)
    raise ConfigurationError(f"Unsupported url: {value!r}")


@dataclass
class Input:
    """An input descriptor.

    Attributes:
        url: Path, URL, or a readable binary stream.
        options: Options placed before ``-i``.
    """

    url: Any
    options: OptionsInput = None
    endpoint: Endpoint = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.endpoint = _endpoint(self.url, "read")

    @property
    def uses_stdin(self) -> bool:
        """True if ffmpeg reads this input from its stdin."""
        if isinstance(self.endpoint, StreamEndpoint):
            return True
        return self.endpoint.url in STDIN_URLS

    @property
    def target(self) -> str:
        """The url argument passed to ffmpeg."""
        if isinstance(self.endpoint, StreamEndpoint):
            return "pipe:0"
        return self.endpoint.url


@dataclass
class Output:
    """An output descriptor.

    Attributes:
        url: Path, URL, or a writable binary stream.
        options: Options placed before the url. The ``keepopen`` key is
            not passed to ffmpeg; it keeps the stream open after the run.
    """

    url: Any
    options: OptionsInput = None
    endpoint: Endpoint = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.endpoint = _endpoint(self.url, "write")

    @property
    def uses_stdout(self) -> bool:
        """True if ffmpeg writes this output to its stdout."""
        if isinstance(self.endpoint, StreamEndpoint):
            return True
        return self.endpoint.url in STDOUT_URLS

    @property
    def keep_open(self) -> bool:
        """True if the output stream must stay open after the run."""
        return "keepopen" in as_option_set(self.options)

    @property
    def target(self) -> str:
        """The url argument passed to ffmpeg."""
        if isinstance(self.endpoint, StreamEndpoint):
            return "pipe:1"
        return self.endpoint.url


def as_input(value: Any) -> Input:
    """Coerce a url, stream, mapping or Input into an Input."""
    if isinstance(value, Input):
        return value
    if isinstance(value, Mapping):
        return Input(value["url"], value.get("options"))
    return Input(value)


def as_output(value: Any) -> Output:
    """Coerce a url, stream, mapping or Output into an Output."""
    if isinstance(value, Output):
        return value
    if isinstance(value, Mapping):
        return Output(value["url"], value.get("options"))
    return Output(value)
