import json
import stat
import sys
from pathlib import Path

import pytest

from clipqueue.utils import Settings
from clipqueue.utils.logger import LogLevel, set_log_level

FAKE_ENGINE = Path(__file__).resolve().parent / "fake_handbrake.py"


def write_preset(path: Path, *names: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({
        "PresetList": [{"PresetName": name, "VideoEncoder": "x264"} for name in names],
        "VersionMajor": 47,
    }), encoding="utf-8")
    return path


def touch(folder: Path, *names: str) -> None:
    folder.mkdir(parents=True, exist_ok=True)
    for name in names:
        (folder / name).write_text("video", encoding="utf-8")


@pytest.fixture(autouse=True)
def _reset_log_level():
    set_log_level(LogLevel.INFO)
    yield
    set_log_level(LogLevel.INFO)


@pytest.fixture
def engine_cmd():
    return [sys.executable, str(FAKE_ENGINE)]


@pytest.fixture
def engine_script(tmp_path):
    """An executable wrapper around the fake engine, usable as handbrakeCliPath."""
    if sys.platform == "win32":
        pytest.skip("shell wrapper needs a POSIX shell")
    script = tmp_path / "bin" / "HandBrakeCLI"
    script.parent.mkdir()
    script.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{FAKE_ENGINE}" "$@"\n', encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def settings(tmp_path):
    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    input_dir.mkdir()
    output_dir.mkdir()
    presets = tmp_path / "presets"
    write_preset(presets / "custom.json", "Fast 1080p30", "Slow 4K")
    return Settings(
        input_path=input_dir,
        output_path=output_dir,
        presets_path=presets,
    )
