"""Option encoding for ffmpeg command lines.

Turns option input into a flat argument list. Option input is one of three
variants, dispatched on explicitly by ``as_option_set``:

- a literal string, tokenized by ``ffrun.options.lexer``
- a sequence of flag names, each becoming a bare flag
- a mapping of key to value (an option set)

An ``EncodingPolicy`` controls how user options merge with defaults, fixed
options, ignored and forbidden keys, and per-key transforms.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TypeAlias, Union

from ffrun.exceptions import ConfigurationError
from ffrun.options.lexer import TokenType, tokenize

logger = logging.getLogger(__name__)

OptionScalar: TypeAlias = Union[str, int, float, None]
OptionValue: TypeAlias = Union[OptionScalar, list[OptionScalar]]
OptionSet: TypeAlias = dict[str, OptionValue]
OptionsInput: TypeAlias = Union[str, Sequence[str], Mapping[str, OptionValue], None]

# Transform invoked instead of assignment: (options, key, value) -> None
SpecFunc: TypeAlias = Callable[[OptionSet, str, OptionValue], None]


@dataclass(frozen=True)
class EncodingPolicy:
    """Rules applied while merging user options.

    Attributes:
        default: Options applied unless the user overrides them.
        fixed: Options that cannot be overridden; setting one is an error.
        ignore: Keys silently dropped from user input.
        error: Keys that are an error when present in user input.
        specs: Per-key transforms run against the accumulating options
            instead of direct assignment.
    """

    default: Mapping[str, OptionValue] = field(default_factory=dict)
    fixed: Mapping[str, OptionValue] = field(default_factory=dict)
    ignore: frozenset[str] = frozenset()
    error: frozenset[str] = frozenset()
    specs: Mapping[str, SpecFunc] = field(default_factory=dict)


def _accumulate(options: OptionSet, key: str, value: OptionValue) -> None:
    """Add a value, turning repeated keys into a list in arrival order."""
    if key not in options:
        options[key] = value
        return
    current = options[key]
    if isinstance(current, list):
        current.append(value)  # type: ignore[arg-type]
    else:
        options[key] = [current, value]  # type: ignore[list-item]


def parse_opts(source: str) -> OptionSet:
    """Parse a literal option string into an option set.

    Args:
        source: Option string such as ``"-i in.mp4 -map 0 -map 1"``.

    Returns:
        Ordered option set. Flags map to None, repeated keys to a list.

    Raises:
        OptionSyntaxError: If the string cannot be tokenized.
    """
    options: OptionSet = {}
    tokens = tokenize(source)
    i = 0
    while tokens[i].type is not TokenType.EOF:
        key = tokens[i].value
        value: str | None = None
        if tokens[i + 1].type is TokenType.VALUE:
            value = tokens[i + 1].value
            i += 1
        _accumulate(options, key, value)
        i += 1
    return options


def as_option_set(user: OptionsInput) -> OptionSet:
    """Normalize any option input variant into an option set."""
    if user is None:
        return {}
    if isinstance(user, str):
        return parse_opts(user)
    if isinstance(user, Mapping):
        return dict(user)
    if isinstance(user, Sequence):
        options: OptionSet = {}
        for flag in user:
            _accumulate(options, str(flag).lstrip("-"), None)
        return options
    raise ConfigurationError(f"Unsupported option input: {user!r}")


def merge_opts(user: OptionsInput, policy: EncodingPolicy | None = None) -> OptionSet:
    """Merge user options with a policy.

    Defaults go in first, then fixed options, then user options in order.

    Raises:
        ConfigurationError: If a user key is fixed or forbidden.
    """
    policy = policy or EncodingPolicy()
    user_options = as_option_set(user)

    options: OptionSet = {**policy.default, **policy.fixed}
    for key, value in user_options.items():
        if key in policy.fixed or key in policy.error:
            raise ConfigurationError(f"{key} option cannot be set")
        if key in policy.specs:
            policy.specs[key](options, key, value)
        elif key not in policy.ignore:
            options[key] = value
        else:
            logger.debug("Ignoring option: %s", key)
    return options


def opts_to_args(
    user: OptionsInput,
    policy: EncodingPolicy | None = None,
    args: list[str] | None = None,
) -> list[str]:
    """Encode options into command-line arguments.

    Args:
        user: Option input (literal string, flag list, or option set).
        policy: Optional merge policy.
        args: Accumulator to append to. A new list is used if omitted.

    Returns:
        The accumulator, with ``-key [value]`` tokens appended. List values
        repeat the flag once per element; None values produce bare flags.

    Raises:
        ConfigurationError: On fixed or forbidden keys. The accumulator is
            left unchanged.
    """
    if args is None:
        args = []
    encoded: list[str] = []
    for key, value in merge_opts(user, policy).items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            encoded.append(f"-{key}")
            if item is not None:
                encoded.append(str(item))
    args.extend(encoded)
    return args


# =============================================================================
# Common transforms
# =============================================================================


def exclusive_flag(*others: str) -> SpecFunc:
    """Build a transform that sets a key and removes mutually exclusive keys.

    Example:
        EncodingPolicy(specs={"y": exclusive_flag("n"), "n": exclusive_flag("y")})
    """

    def spec(options: OptionSet, key: str, value: OptionValue) -> None:
        for other in others:
            options.pop(other, None)
        options[key] = value

    return spec


def removes(*keys: str) -> SpecFunc:
    """Build a transform that removes keys without setting its own key."""

    def spec(options: OptionSet, key: str, value: OptionValue) -> None:
        for other in keys:
            options.pop(other, None)

    return spec
