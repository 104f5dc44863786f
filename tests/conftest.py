"""Shared test fixtures."""

import subprocess
from pathlib import Path

import pytest

from mediasplit.ffutil import EngineCommand
from mediasplit.models import MediaFile

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeEngine:
    """Records submitted commands; optionally fails on one output."""

    def __init__(self, fail_on: int | None = None):
        self.fail_on = fail_on
        self.commands: list[EngineCommand] = []

    def submit(self, command: EngineCommand) -> bytes:
        self.commands.append(command)
        if self.fail_on is not None and len(self.commands) - 1 == self.fail_on:
            raise subprocess.CalledProcessError(1, ["ffmpeg"], stderr=b"Invalid data found when processing input")
        return f"part {len(self.commands)}".encode()


def make_media(path: Path, duration: float = 120.0, size_bytes: int = 50 * 1024 * 1024) -> MediaFile:
    return MediaFile(
        path=path,
        name=path.name,
        size_bytes=size_bytes,
        duration=duration,
        mime_type="video/mp4",
    )


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
