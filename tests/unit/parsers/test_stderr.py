"""Tests for stderr scanning helpers."""

from ffrun.parsers.stderr import (
    ErrorTail,
    extract_error,
    received_signal,
    signal_name,
    split_blocks,
)


class TestSplitBlocks:
    """Tests for split_blocks()."""

    def test_indented_lines_continue_block(self) -> None:
        """Should keep indented lines with their block."""
        text = "Input #0, wav, from 'a.wav':\n  Duration: N/A\nStream mapping:\n  x\nPress"
        blocks, rest = split_blocks(text)
        assert blocks == [
            "Input #0, wav, from 'a.wav':\n  Duration: N/A",
            "Stream mapping:\n  x",
        ]
        assert rest == "Press"

    def test_trailing_newline_stays_in_remainder(self) -> None:
        """Should not split on a final newline."""
        blocks, rest = split_blocks("line one\nline two\n")
        assert blocks == ["line one"]
        assert rest == "line two\n"

    def test_progress_mode_splits_carriage_returns(self) -> None:
        """Should split status lines rewritten with a bare CR."""
        blocks, rest = split_blocks("frame=1\rframe=2\rframe=", progress=True)
        assert blocks == ["frame=1", "frame=2"]
        assert rest == "frame="

    def test_crlf_is_one_break(self) -> None:
        """Should treat CRLF as a single line break."""
        blocks, rest = split_blocks("a\r\nb\r\nc", progress=True)
        assert blocks == ["a", "b"]
        assert rest == "c"


class TestExtractError:
    """Tests for extract_error()."""

    def test_trailing_top_level_lines(self) -> None:
        """Should return the lines after the last tagged line."""
        text = (
            "[in#0 @ 0x5581] Error opening input: No such file or directory\n"
            "missing.mp4: No such file or directory\n"
        )
        assert extract_error(text) == "missing.mp4: No such file or directory"

    def test_multiple_lines(self) -> None:
        """Should join several trailing lines."""
        text = "  Stream #0:0: Video\nError while filtering\nConversion failed!\n"
        assert extract_error(text) == "Error while filtering\nConversion failed!"

    def test_status_lines_are_skipped(self) -> None:
        """Should ignore status lines without resetting."""
        text = "Past duration too large\nframe=  10 fps=0.0\nConversion failed!"
        assert extract_error(text) == "Past duration too large\nConversion failed!"

    def test_empty_when_tail_is_indented(self) -> None:
        """Should return an empty string after an indented line."""
        assert extract_error("Error\n  detail\n") == ""


class TestErrorTail:
    """Tests for the incremental ErrorTail."""

    def test_incomplete_line_waits(self) -> None:
        """Should only count complete lines until closed."""
        tail = ErrorTail()
        tail.feed("Error open")
        assert tail.message == ""
        tail.feed("ing file\nLast")
        assert tail.message == "Error opening file"
        tail.close()
        assert tail.message == "Error opening file\nLast"


class TestSignals:
    """Tests for signal helpers."""

    def test_received_signal(self) -> None:
        """Should return the name of the reported signal."""
        assert received_signal("Exiting normally, received signal 15.") == "SIGTERM"
        assert received_signal("Conversion failed!") is None

    def test_signal_name(self) -> None:
        """Should map numbers to names and fall back for unknown numbers."""
        assert signal_name(2) == "SIGINT"
        assert signal_name(999) == "SIG999"
