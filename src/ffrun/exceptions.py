"""Custom exceptions for ffrun.

All errors raised by this package derive from FFrunError, allowing callers
to catch every ffrun failure with a single except clause.
"""

from __future__ import annotations

from collections.abc import Sequence


class FFrunError(Exception):
    """Base exception for ffrun errors."""


class ConfigurationError(FFrunError):
    """Raised synchronously when a command or configuration is invalid.

    Covers conflicting or forbidden option keys, multiple endpoints bound to
    the same standard stream, and invalid configuration values. Nothing is
    spawned when this is raised.
    """


class OptionSyntaxError(ConfigurationError):
    """Raised when a literal option string cannot be tokenized.

    Attributes:
        source: The option string being tokenized.
        position: Character offset of the offending token.
    """

    def __init__(self, message: str, source: str = "", position: int = 0) -> None:
        self.source = source
        self.position = position
        super().__init__(message)

    def format_error(self) -> str:
        """Format error with caret pointing at the problem position."""
        msg = str(self)
        if not self.source:
            return msg
        caret = " " * self.position + "^"
        return f"{msg}\n  {self.source}\n  {caret}"


class CapabilityParseError(ConfigurationError):
    """Raised when query output matches no recognized item pattern.

    The message is the raw output text, unchanged.
    """


class UnknownCapabilityError(FFrunError):
    """Raised when ffmpeg reports that a queried item does not exist.

    Attributes:
        item_type: Kind of item queried (e.g. "demuxer", "encoder").
        name: Name that was queried.
    """

    def __init__(self, text: str, item_type: str = "", name: str = "") -> None:
        self.item_type = item_type
        self.name = name
        super().__init__(text)


class ToolNotFoundError(FFrunError):
    """Raised when an executable cannot be resolved or spawned.

    Attributes:
        tool: Name of the missing tool.
    """

    def __init__(self, tool: str, message: str | None = None) -> None:
        self.tool = tool
        super().__init__(
            message
            or f"{tool} is not installed or not in PATH. "
            f"Set FFRUN_{tool.upper()}_PATH or configure [tools] in the "
            "config file."
        )


class FFmpegError(FFrunError):
    """Error produced by an ffmpeg run or query.

    Attributes:
        command: The full command line, joined with spaces.
        log: Diagnostic text captured from the process stderr.
    """

    def __init__(
        self,
        message: str,
        args: Sequence[str] | str = (),
        log: str = "",
    ) -> None:
        if isinstance(args, str):
            self.command = args
        else:
            self.command = " ".join(args)
        self.log = log
        super().__init__(message)


class JobFileError(FFrunError):
    """Raised when a job file cannot be loaded or fails validation.

    Attributes:
        path: Path of the job file, if loaded from disk.
    """

    def __init__(self, message: str, path: object = None) -> None:
        self.path = path
        super().__init__(message)
