from __future__ import annotations

from pathlib import Path

import pytest

from tunefetch.models import ToolLocation


@pytest.fixture(autouse=True)
def private_home(tmp_path: Path, monkeypatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("TUNEFETCH_HOME", str(home))
    return home


class FakeToolchain:
    def __init__(self, tmp_path: Path):
        self.ytdlp_loc = ToolLocation(tool="yt-dlp", path=tmp_path / "yt-dlp", source="system")
        self.ffmpeg_loc = ToolLocation(tool="ffmpeg", path=tmp_path / "ffmpeg", source="system")
        self.calls = []

    def ytdlp(self) -> ToolLocation:
        self.calls.append("yt-dlp")
        return self.ytdlp_loc

    def ffmpeg(self) -> ToolLocation:
        self.calls.append("ffmpeg")
        return self.ffmpeg_loc


@pytest.fixture
def fake_toolchain(tmp_path: Path) -> FakeToolchain:
    return FakeToolchain(tmp_path)
