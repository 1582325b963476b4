"""Shared test fixtures for ffrun."""

import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from ffrun.config import clear_config_cache

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FAKE_FFMPEG = FIXTURES_DIR / "fake_ffmpeg.py"


def load_ffmpeg_fixture(name: str) -> str:
    """Load captured ffmpeg output by file name (without .txt)."""
    return (FIXTURES_DIR / "ffmpeg" / f"{name}.txt").read_text()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep the user's config file and FFRUN_* variables out of tests."""
    for var in (
        "FFRUN_FFMPEG_PATH",
        "FFRUN_FFPROBE_PATH",
        "FFRUN_LOG_LEVEL",
        "FFRUN_LOG_FILE",
        "FFRUN_LOG_FORMAT",
        "FFRUN_LOG_STDERR",
        "FFRUN_LOG_MAX_BYTES",
        "FFRUN_LOG_BACKUP_COUNT",
        "FFRUN_QUERY_TIMEOUT",
        "FFRUN_KILL_SIGNAL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("FFRUN_CONFIG_PATH", str(tmp_path / "missing-config.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def ffmpeg_fixture() -> Callable[[str], str]:
    """Return a loader for captured ffmpeg output."""
    return load_ffmpeg_fixture


@pytest.fixture
def fake_spawner():
    """Return a factory of spawners running the fake ffmpeg script.

    The scenario name selects the behavior of the fake (see
    tests/fixtures/fake_ffmpeg.py); ffmpeg arguments are passed along.
    """

    def factory(scenario: str):
        def spawner(args: list[str], options: dict) -> subprocess.Popen:
            return subprocess.Popen(
                [sys.executable, str(FAKE_FFMPEG), scenario, *args[1:]], **options
            )

        return spawner

    return factory
