"""Command-line option encoding and filtergraph compilation."""

from ffrun.options.encoder import (
    EncodingPolicy,
    OptionSet,
    OptionsInput,
    OptionValue,
    as_option_set,
    exclusive_flag,
    merge_opts,
    opts_to_args,
    parse_opts,
    removes,
)
from ffrun.options.filters import (
    FilterSpec,
    compile_filter,
    compile_filters,
    filter_graph,
)

__all__ = [
    "EncodingPolicy",
    "FilterSpec",
    "OptionSet",
    "OptionValue",
    "OptionsInput",
    "as_option_set",
    "compile_filter",
    "compile_filters",
    "exclusive_flag",
    "filter_graph",
    "merge_opts",
    "opts_to_args",
    "parse_opts",
    "removes",
]
