"""Tests for the version, caps and info commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ffrun.cli import main
from ffrun.config import FFrunConfig
from ffrun.exceptions import ToolNotFoundError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def fake_ffmpeg(ffmpeg_fixture):
    """Answer capability queries from the captured fixtures."""

    def run(args, timeout):
        if args[1] == "-version":
            return "ffmpeg version 6.1.1 Copyright (c) 2000-2023\n", "", 0
        if args[1] == "-h":
            item_type, name = args[2].split("=", 1)
            try:
                return ffmpeg_fixture(f"help_{item_type}_{name}"), "", 0
            except FileNotFoundError:
                return f"Codec '{name}' is not recognized by FFmpeg.\n", "", 0
        return ffmpeg_fixture(args[1].lstrip("-")), "", 0

    with patch("ffrun.cli.query.require_tool", return_value=Path("/usr/bin/ffmpeg")), \
            patch("ffrun.tools.capabilities.run_command", run), \
            patch("ffrun.cli.configure_logging"):
        yield


def invoke(runner: CliRunner, args: list[str]):
    return runner.invoke(main, args, obj={"config": FFrunConfig()})


class TestVersionCommand:
    """Tests for the version command."""

    def test_prints_version(self, runner: CliRunner) -> None:
        """Should print the ffmpeg version word."""
        result = invoke(runner, ["version"])
        assert result.exit_code == 0
        assert result.output == "6.1.1\n"

    def test_missing_ffmpeg(self, runner: CliRunner) -> None:
        """Should fail with the locator message."""
        with patch("ffrun.cli.query.require_tool", side_effect=ToolNotFoundError("ffmpeg")):
            result = invoke(runner, ["version"])
        assert result.exit_code == 1
        assert "Error: ffmpeg is not installed or not in PATH" in result.output


class TestCapsCommand:
    """Tests for the caps command."""

    def test_table_output(self, runner: CliRunner) -> None:
        """Should print a name and description per entry."""
        result = invoke(runner, ["caps", "encoders"])
        assert result.exit_code == 0
        rows = {line.split()[0]: line for line in result.output.splitlines()}
        assert rows["mpeg4"].endswith("  MPEG-4 part 2")
        assert "libx264" in rows

    def test_list_output(self, runner: CliRunner) -> None:
        """Should print plain lists as YAML."""
        result = invoke(runner, ["caps", "bsfs"])
        assert result.exit_code == 0
        assert "- aac_adtstoasc\n" in result.output
        assert "- h264_mp4toannexb\n" in result.output

    def test_json_output(self, runner: CliRunner) -> None:
        """Should print the listing as JSON."""
        result = invoke(runner, ["caps", "codecs", "--json"])
        assert result.exit_code == 0
        codecs = json.loads(result.output)
        assert codecs["h264"]["can_encode"] is True
        assert "libx264" in codecs["h264"]["encoders"]

    def test_unknown_listing(self, runner: CliRunner) -> None:
        """Should reject names that are not listings."""
        result = invoke(runner, ["caps", "widgets"])
        assert result.exit_code == 2


class TestInfoCommand:
    """Tests for the info command."""

    def test_yaml_output(self, runner: CliRunner) -> None:
        """Should print the item details as YAML."""
        result = invoke(runner, ["info", "encoder", "libx264"])
        assert result.exit_code == 0
        assert "name: libx264\n" in result.output

    def test_json_output(self, runner: CliRunner) -> None:
        """Should print the item details as JSON."""
        result = invoke(runner, ["info", "muxer", "mp4", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["video_codec"] == "h264"

    def test_unknown_item(self, runner: CliRunner) -> None:
        """Should exit with code 1 when ffmpeg does not know the item."""
        result = invoke(runner, ["info", "encoder", "nope"])
        assert result.exit_code == 1
        assert "Error: Codec 'nope' is not recognized by FFmpeg." in result.output
