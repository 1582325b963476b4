"""Tests for progress line parsing."""

import pytest

from ffrun.parsers.progress import (
    ProgressRecord,
    Psnr,
    is_progress_line,
    parse_bitrate,
    parse_progress_line,
    parse_size,
    time_to_seconds,
)


class TestParseProgressLine:
    """Tests for parse_progress_line()."""

    def test_parses_typical_line(self) -> None:
        """Should convert every known key to its unit."""
        record = parse_progress_line(
            "frame=   50 fps=0.0 q=28.0 size=     256kB time=00:00:02.00 "
            "bitrate=1048.6kbits/s speed=3.98x    "
        )
        assert record.frame == 50
        assert record.fps == 0.0
        assert record.q == 28.0
        assert record.size == 256 * 1024
        assert record.time == 2.0
        assert record.bitrate == pytest.approx(1048600)
        assert record.speed == pytest.approx(3.98)
        assert record.last is False

    def test_last_marker(self) -> None:
        """Should detect the L marker of the final status line."""
        record = parse_progress_line(
            "frame=  250 fps=123 q=-1.0 Lsize=    1536kB time=00:00:10.00 "
            "bitrate=1258.3kbits/s speed=4.92x"
        )
        assert record.last is True
        assert record.size == 1536 * 1024
        assert record.q == -1.0

    def test_not_available_values_are_none(self) -> None:
        """Should leave N/A values as None."""
        record = parse_progress_line(
            "size=N/A time=00:00:01.00 bitrate=N/A speed=N/A"
        )
        assert record.size is None
        assert record.bitrate is None
        assert record.speed is None
        assert record.time == 1.0

    def test_repeated_keys_become_list(self) -> None:
        """Should keep every q value when several outputs report one."""
        record = parse_progress_line("frame=1 fps=0 q=0.0 q=1.0 size=1kB time=00:00:00.04")
        assert record.q == [0.0, 1.0]

    def test_unknown_keys_go_to_extra(self) -> None:
        """Should keep unknown keys as text."""
        record = parse_progress_line("frame=1 dup=2 drop=1 elapsed=0:00:01.00")
        assert record.dup == 2
        assert record.drop == 1
        assert record.extra == {"elapsed": "0:00:01.00"}

    def test_psnr(self) -> None:
        """Should parse the PSNR group."""
        record = parse_progress_line(
            "frame=10 q=0.0 size=N/A time=00:00:00.40 "
            "PSNR=Y:40.12 U:42.00 V:41.50 *:40.90 speed=0.8x"
        )
        assert record.psnr == Psnr(40.12, 42.0, 41.5, 40.9)
        assert record.speed == pytest.approx(0.8)

    def test_qp_histogram(self) -> None:
        """Should keep the hex histogram of -qphist."""
        hist = "0123456789abcdef0123456789abcdef"
        record = parse_progress_line(f"frame=10 q=28.0 {hist} size=1kB")
        assert record.qp_hist == hist

    def test_uppercase_histogram_before_last_size(self) -> None:
        """Should split an uppercase histogram glued to Lsize=."""
        hist = "0000000000000000000000000000A000"
        record = parse_progress_line(
            f"frame=  250 fps=123 q=28.0 {hist}Lsize=    1536kB "
            "time=00:00:10.00 bitrate=1258.3kbits/s speed=4.92x"
        )
        assert record.qp_hist == hist
        assert record.last is True
        assert record.size == 1536 * 1024
        assert record.extra == {}


class TestGetPercent:
    """Tests for ProgressRecord.get_percent()."""

    def test_percent_of_duration(self) -> None:
        """Should compute the percentage of the duration."""
        assert ProgressRecord(time=5.0).get_percent(10.0) == 50.0

    def test_clamps_to_hundred(self) -> None:
        """Should never exceed 100."""
        assert ProgressRecord(time=20.0).get_percent(10.0) == 100.0

    def test_unknown_duration(self) -> None:
        """Should return 0 without a duration or time."""
        assert ProgressRecord(time=5.0).get_percent(None) == 0.0
        assert ProgressRecord().get_percent(10.0) == 0.0


class TestUnitHelpers:
    """Tests for the value conversion helpers."""

    def test_time_to_seconds(self) -> None:
        """Should convert timestamps to signed seconds."""
        assert time_to_seconds("01:02:03.5") == pytest.approx(3723.5)
        assert time_to_seconds("-00:00:01.50") == pytest.approx(-1.5)
        assert time_to_seconds("00:00:07") == 7.0

    def test_time_to_seconds_invalid(self) -> None:
        """Should return None for non-timestamps."""
        assert time_to_seconds("N/A") is None
        assert time_to_seconds("12.5") is None

    def test_parse_size(self) -> None:
        """Should convert sizes to bytes."""
        assert parse_size("256kB") == 262144
        assert parse_size("1024KiB") == 1048576
        assert parse_size("2MiB") == 2097152
        assert parse_size("12B") == 12
        assert parse_size("N/A") is None

    def test_parse_bitrate(self) -> None:
        """Should convert kbits/s to bit/s."""
        assert parse_bitrate("524.3kbits/s") == pytest.approx(524300)
        assert parse_bitrate("N/A") is None

    def test_is_progress_line(self) -> None:
        """Should recognize frame= and size= lines."""
        assert is_progress_line("frame=  1 fps=0")
        assert is_progress_line("size=  1kB time=00:00:01.00")
        assert not is_progress_line("Press [q] to stop")
