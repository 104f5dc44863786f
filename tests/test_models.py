"""Tests for shared data types and error messages."""

import subprocess
from pathlib import Path

from mediasplit.errors import EngineLoadError, SegmentFailureError, user_message
from mediasplit.models import MediaFile, OutputArtifact, Window, format_duration, guess_mime_type


class TestFormatDuration:
    def test_seconds(self):
        assert format_duration(42.9) == "42s"

    def test_minutes(self):
        assert format_duration(125) == "2m 5s"

    def test_hours(self):
        assert format_duration(3725) == "1h 2m 5s"

    def test_zero(self):
        assert format_duration(0) == "0s"


class TestModels:
    def test_window_end(self):
        assert Window(start=10.0, duration=5.0, index=0).end == 15.0

    def test_media_name_parts(self):
        media = MediaFile(path=Path("/tmp/input.mkv"), name="Talk.v2.mkv", size_bytes=1, duration=1.0)
        assert media.base_name == "Talk.v2"
        assert media.extension == ".mkv"

    def test_guess_mime_type(self):
        assert guess_mime_type("a.mp3") == "audio/mpeg"
        assert guess_mime_type("a.unknownext") == "application/octet-stream"

    def test_artifact_dict(self):
        artifact = OutputArtifact(name="1_a_1.mp4", path=Path("/x"), size_bytes=3, index=0)
        assert artifact.to_dict() == {"name": "1_a_1.mp4", "index": 0, "size_bytes": 3, "download_url": None}


class TestUserMessage:
    def test_ffmpeg_failure(self):
        err = subprocess.CalledProcessError(1, ["ffmpeg"], stderr=b"moov atom not found\n")
        assert user_message(err) == "ffmpeg failed: moov atom not found"

    def test_engine_load(self):
        assert user_message(EngineLoadError("ffmpeg not found on PATH")).startswith("Media engine unavailable")

    def test_segment_failure(self):
        assert user_message(SegmentFailureError(0)) == "Part 1 failed"
