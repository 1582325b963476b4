"""Tests for the probe command."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ffrun.cli import main
from ffrun.config import FFrunConfig
from ffrun.exceptions import FFmpegError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def ffprobe_path():
    with patch("ffrun.cli.probe.require_tool", return_value=Path("/usr/bin/ffprobe")), \
            patch("ffrun.cli.configure_logging"):
        yield


class TestProbeCommand:
    """Tests for the probe command."""

    def test_prints_document(self, runner: CliRunner) -> None:
        """Should print ffprobe's document as indented JSON."""
        document = {"format": {"filename": "in.mp4", "nb_streams": 2}}
        with patch("ffrun.cli.probe.probe", return_value=document) as probe:
            result = runner.invoke(
                main,
                ["probe", "in.mp4", "--option=-show_frames", "--option=-hide_chapters"],
                obj={"config": FFrunConfig()},
            )
        assert result.exit_code == 0
        assert json.loads(result.output) == document
        probe.assert_called_once_with(
            "in.mp4",
            "-show_frames -hide_chapters",
            executable=Path("/usr/bin/ffprobe"),
            timeout=30.0,
        )

    def test_versions_without_url(self, runner: CliRunner) -> None:
        """Should probe versions when no url is given."""
        with patch("ffrun.cli.probe.probe", return_value={}) as probe:
            result = runner.invoke(main, ["probe"], obj={"config": FFrunConfig()})
        assert result.exit_code == 0
        assert probe.call_args.args == (None, None)

    def test_failure(self, runner: CliRunner) -> None:
        """Should print ffprobe's error and exit with code 1."""
        error = FFmpegError("in.mp4: No such file or directory", ["ffprobe"])
        with patch("ffrun.cli.probe.probe", side_effect=error):
            result = runner.invoke(main, ["probe", "in.mp4"], obj={"config": FFrunConfig()})
        assert result.exit_code == 1
        assert "Error: in.mp4: No such file or directory" in result.output
