"""Tests for option encoding."""

import pytest

from ffrun.exceptions import ConfigurationError, OptionSyntaxError
from ffrun.options import (
    EncodingPolicy,
    as_option_set,
    exclusive_flag,
    merge_opts,
    opts_to_args,
    parse_opts,
    removes,
)


class TestParseOpts:
    """Tests for parse_opts()."""

    def test_parses_keys_and_flags(self) -> None:
        """Should map flags to None and keep values as text."""
        assert parse_opts("-c:v libx264 -crf 20 -y") == {
            "c:v": "libx264",
            "crf": "20",
            "y": None,
        }

    def test_repeated_keys_become_list(self) -> None:
        """Should collect repeated keys in arrival order."""
        assert parse_opts("-map 0:v -map 1:a -map 2") == {"map": ["0:v", "1:a", "2"]}

    def test_preserves_order(self) -> None:
        """Should keep keys in the order they appear."""
        assert list(parse_opts("-ss 5 -i x -t 2")) == ["ss", "i", "t"]

    def test_syntax_error_propagates(self) -> None:
        """Should raise OptionSyntaxError for malformed strings."""
        with pytest.raises(OptionSyntaxError):
            parse_opts("20 -crf")


class TestAsOptionSet:
    """Tests for as_option_set()."""

    def test_none_is_empty(self) -> None:
        """Should return an empty set for None."""
        assert as_option_set(None) == {}

    def test_string_is_parsed(self) -> None:
        """Should tokenize literal strings."""
        assert as_option_set("-f null") == {"f": "null"}

    def test_list_of_flags(self) -> None:
        """Should turn each list entry into a bare flag."""
        assert as_option_set(["-y", "an", "vn"]) == {"y": None, "an": None, "vn": None}

    def test_mapping_is_copied(self) -> None:
        """Should copy mappings rather than alias them."""
        source = {"crf": 20}
        result = as_option_set(source)
        result["preset"] = "fast"
        assert source == {"crf": 20}

    def test_unsupported_input_raises(self) -> None:
        """Should reject inputs that are not a string, list, or mapping."""
        with pytest.raises(ConfigurationError, match="Unsupported option input"):
            as_option_set(42)  # type: ignore[arg-type]


class TestMergeOpts:
    """Tests for merge_opts()."""

    def test_defaults_can_be_overridden(self) -> None:
        """Should let user values replace defaults."""
        policy = EncodingPolicy(default={"loglevel": "error"})
        assert merge_opts({"loglevel": "info"}, policy) == {"loglevel": "info"}

    def test_fixed_follow_defaults(self) -> None:
        """Should apply defaults then fixed options in that order."""
        policy = EncodingPolicy(
            default={"show_format": None}, fixed={"print_format": "json"}
        )
        assert list(merge_opts(None, policy)) == ["show_format", "print_format"]

    def test_fixed_key_raises(self) -> None:
        """Should reject user values for fixed keys."""
        policy = EncodingPolicy(fixed={"print_format": "json"})
        with pytest.raises(ConfigurationError, match="print_format option cannot be set"):
            merge_opts({"print_format": "xml"}, policy)

    def test_error_key_raises(self) -> None:
        """Should reject forbidden keys."""
        policy = EncodingPolicy(error=frozenset({"of"}))
        with pytest.raises(ConfigurationError, match="of option cannot be set"):
            merge_opts("-of csv", policy)

    def test_ignored_key_is_dropped(self) -> None:
        """Should silently drop ignored keys."""
        policy = EncodingPolicy(ignore=frozenset({"hide_banner"}))
        assert merge_opts("-hide_banner -y", policy) == {"y": None}

    def test_exclusive_flag_spec(self) -> None:
        """Should remove the mutually exclusive flag."""
        policy = EncodingPolicy(
            default={"y": None},
            specs={"y": exclusive_flag("n"), "n": exclusive_flag("y")},
        )
        assert merge_opts("-n", policy) == {"n": None}

    def test_removes_spec(self) -> None:
        """Should remove keys without adding its own key."""
        policy = EncodingPolicy(
            default={"show_format": None, "show_streams": None},
            specs={"hide_format": removes("show_format")},
        )
        assert merge_opts("-hide_format", policy) == {"show_streams": None}


class TestOptsToArgs:
    """Tests for opts_to_args()."""

    def test_encodes_mapping(self) -> None:
        """Should emit flags, values and repeated list values."""
        args = opts_to_args({"map": ["0:v", "0:a"], "c:v": "libx264", "crf": 20, "y": None})
        assert args == ["-map", "0:v", "-map", "0:a", "-c:v", "libx264", "-crf", "20", "-y"]

    def test_appends_to_accumulator(self) -> None:
        """Should extend the given accumulator and return it."""
        acc = ["ffmpeg"]
        result = opts_to_args("-f null", args=acc)
        assert result is acc
        assert acc == ["ffmpeg", "-f", "null"]

    def test_accumulator_unchanged_on_error(self) -> None:
        """Should not touch the accumulator when encoding fails."""
        acc = ["ffmpeg"]
        policy = EncodingPolicy(error=frozenset({"i"}))
        with pytest.raises(ConfigurationError):
            opts_to_args({"y": None, "i": "x"}, policy, acc)
        assert acc == ["ffmpeg"]

    def test_none_input(self) -> None:
        """Should produce no arguments for None without a policy."""
        assert opts_to_args(None) == []
