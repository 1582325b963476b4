"""Filter graph compilation.

Builds ffmpeg filtergraph fragments such as ``[0:v][logo]overlay=10:10[out]``
from declarative filter specifications.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias, Union

_PAD_RE = re.compile(r"^\[?(.*?)\]?$")

PadLabels: TypeAlias = Union[str, Sequence[str], None]
FilterOptions: TypeAlias = Union[
    str, int, float, Sequence[Any], Mapping[str, Any], None
]


@dataclass(frozen=True)
class FilterSpec:
    """One filter of a filtergraph.

    Attributes:
        filter: Filter name, e.g. "scale".
        inputs: Input pad label or labels, bracketed or not.
        outputs: Output pad label or labels, bracketed or not.
        options: A string or number, a positional list, or a mapping of
            named options.
    """

    filter: str
    inputs: PadLabels = None
    outputs: PadLabels = None
    options: FilterOptions = field(default=None)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FilterSpec:
        """Build a spec from a plain mapping with the same keys."""
        return cls(
            filter=data["filter"],
            inputs=data.get("inputs"),
            outputs=data.get("outputs"),
            options=data.get("options"),
        )


def _pads(labels: PadLabels) -> str:
    if labels is None:
        return ""
    if isinstance(labels, str):
        labels = [labels]
    return "".join(_PAD_RE.sub(r"[\1]", label) for label in labels)


def _quote(value: Any) -> str:
    text = str(value)
    return f"'{text}'" if "," in text else text


def _options(options: FilterOptions) -> str:
    if options is None or isinstance(options, bool):
        return ""
    if isinstance(options, str):
        return f"={options}" if options else ""
    if isinstance(options, (int, float)):
        return f"={options}"
    if isinstance(options, Mapping):
        # None leaves the option at the filter's default
        pairs = [
            f"{key}={_quote(value)}"
            for key, value in options.items()
            if value is not None
        ]
        return "=" + ":".join(pairs) if pairs else ""
    if not options:
        return ""
    return "=" + ":".join(_quote(value) for value in options)


def compile_filter(spec: FilterSpec | Mapping[str, Any] | str) -> str:
    """Compile one filter specification into a filtergraph fragment.

    Strings pass through unchanged.
    """
    if isinstance(spec, str):
        return spec
    if isinstance(spec, Mapping):
        spec = FilterSpec.from_mapping(spec)
    return (
        f"{_pads(spec.inputs)}{spec.filter}"
        f"{_options(spec.options)}{_pads(spec.outputs)}"
    )


def compile_filters(
    specs: Iterable[FilterSpec | Mapping[str, Any] | str],
) -> list[str]:
    """Compile filter specifications, one fragment per spec."""
    return [compile_filter(spec) for spec in specs]


def filter_graph(
    specs: Iterable[FilterSpec | Mapping[str, Any] | str], separator: str = ";"
) -> str:
    """Compile and join filters into one graph string.

    Use ``separator=","`` for a linear chain.
    """
    return separator.join(compile_filters(specs))
