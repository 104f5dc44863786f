"""FFmpeg/ffprobe subprocess helpers and the shared engine instance."""

import json
import logging
import shutil
import subprocess
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol

from mediasplit.errors import EngineLoadError, UnsupportedFormatError
from mediasplit.manifest import EncodingPolicy, ReEncode, StreamCopy
from mediasplit.models import MediaFile, guess_mime_type

logger = logging.getLogger(__name__)

FASTSTART_EXTENSIONS = {".mp4", ".m4v", ".m4a", ".mov", ".3gp"}

# Audio codecs the audio-only containers accept when re-encoding
AUDIO_CODECS = {
    ".mp3": "libmp3lame",
    ".ogg": "libvorbis",
    ".opus": "libopus",
    ".webm": "libopus",
    ".flac": "flac",
    ".wav": "pcm_s16le",
}
VIDEO_CODECS = {".webm": "libvpx-vp9"}
AUDIO_ONLY_EXTENSIONS = {".mp3", ".m4a", ".aac", ".flac", ".ogg", ".opus", ".wav"}


def check_ffmpeg() -> None:
    """Raise EngineLoadError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise EngineLoadError(f"{cmd} not found on PATH")


def _parse_duration(data: dict) -> float:
    raw = data.get("format", {}).get("duration")
    try:
        duration = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return duration if duration > 0 else 0.0


def probe_duration(input_path: Path) -> float:
    """Return the container duration in seconds, or 0.0 when it is unknown."""
    return probe_media(input_path).duration


def probe_media(input_path: Path, name: str | None = None) -> MediaFile:
    """Read metadata via ffprobe.

    Raises UnsupportedFormatError when ffprobe cannot read the file or it
    carries neither an audio nor a video stream. A readable file without a
    usable duration yields ``duration == 0.0``.
    """
    cmd = [
        "ffprobe",
        "-v", "error",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise EngineLoadError(f"Cannot run ffprobe: {e}") from e
    if result.returncode != 0:
        detail = (result.stderr or "").strip()[-300:]
        raise UnsupportedFormatError(f"ffprobe could not read {input_path.name}" + (f": {detail}" if detail else ""))

    try:
        data = json.loads(result.stdout or "")
    except json.JSONDecodeError as e:
        raise UnsupportedFormatError(f"ffprobe returned unreadable metadata for {input_path.name}") from e

    streams = data.get("streams", [])
    if not any(s.get("codec_type") in ("audio", "video") for s in streams):
        raise UnsupportedFormatError(f"No audio or video stream found in {input_path.name}")

    name = name or input_path.name
    return MediaFile(
        path=input_path,
        name=name,
        size_bytes=input_path.stat().st_size,
        duration=_parse_duration(data),
        mime_type=guess_mime_type(name),
    )


@dataclass(frozen=True)
class EngineCommand:
    """One window's worth of work for the media engine."""

    input_path: Path
    start: float
    duration: float
    policy: EncodingPolicy
    output_name: str

    @property
    def extension(self) -> str:
        return Path(self.output_name).suffix.lower()

    def to_args(self) -> list[str]:
        """FFmpeg arguments, without the binary and the output path."""
        args = [
            "-ss", f"{self.start:.6f}",
            "-i", str(self.input_path),
            "-t", f"{self.duration:.6f}",
        ]
        if isinstance(self.policy, ReEncode) and self.extension in AUDIO_ONLY_EXTENSIONS:
            args += [
                "-map", "0:a",
                "-vn",
                "-c:a", AUDIO_CODECS.get(self.extension, self.policy.audio_codec),
                "-b:a", self.policy.audio_bitrate,
            ]
        elif isinstance(self.policy, ReEncode):
            args += [
                "-map", "0:v?",
                "-map", "0:a?",
                "-c:v", VIDEO_CODECS.get(self.extension, self.policy.video_codec),
                "-preset", self.policy.preset,
                "-crf", str(self.policy.video_crf),
                "-c:a", AUDIO_CODECS.get(self.extension, self.policy.audio_codec),
                "-b:a", self.policy.audio_bitrate,
            ]
        elif isinstance(self.policy, StreamCopy):
            args += [
                "-map", "0",
                "-c", "copy",
                "-avoid_negative_ts", "make_zero",
            ]
        else:
            raise ValueError(f"Unsupported encoding policy: {self.policy!r}")

        if self.extension in FASTSTART_EXTENSIONS:
            args += ["-movflags", "+faststart"]
        return args


class MediaEngine(Protocol):
    def submit(self, command: EngineCommand) -> bytes: ...


class FFmpegEngine:
    """Runs each command through the ffmpeg binary and returns the output bytes."""

    def __init__(self, ffmpeg: str = "ffmpeg", scratch_dir: Path | None = None):
        self.ffmpeg = ffmpeg
        self.scratch_dir = scratch_dir
        self.ready = False

    def bootstrap(self) -> None:
        if self.ready:
            return
        if shutil.which(self.ffmpeg) is None:
            raise EngineLoadError(f"{self.ffmpeg} not found on PATH")
        try:
            if self.scratch_dir is None:
                self.scratch_dir = Path(tempfile.mkdtemp(prefix="mediasplit_engine_"))
            else:
                self.scratch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EngineLoadError(f"Cannot create engine scratch directory: {e}") from e
        self.ready = True
        logger.info("Media engine ready (scratch dir %s)", self.scratch_dir)

    def submit(self, command: EngineCommand) -> bytes:
        self.bootstrap()
        output_path = self.scratch_dir / command.output_name
        cmd = [
            self.ffmpeg, "-y",
            "-hide_banner", "-loglevel", "error",
            *command.to_args(),
            str(output_path),
        ]
        logger.debug("Running %s", " ".join(cmd))
        try:
            subprocess.run(cmd, capture_output=True, check=True)
            return output_path.read_bytes()
        finally:
            output_path.unlink(missing_ok=True)


# Process-wide engine: bootstrapped on first use, kept until exit.
_engine: FFmpegEngine | None = None
_engine_lock = threading.Lock()


def get_engine() -> FFmpegEngine:
    global _engine
    if _engine is None:
        check_ffmpeg()
        engine = FFmpegEngine()
        engine.bootstrap()
        _engine = engine
    return _engine


def engine_busy() -> bool:
    return _engine_lock.locked()


@contextmanager
def engine_session(engine: MediaEngine | None = None) -> Iterator[MediaEngine]:
    """Hold exclusive use of the media engine for one split operation.

    ``engine`` substitutes another implementation for the shared FFmpeg one;
    the lock is taken either way.
    """
    with _engine_lock:
        yield engine if engine is not None else get_engine()
