"""Shared data types used across MediaSplit."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class MediaFile:
    """A probed source file. Immutable for the lifetime of one split."""

    path: Path
    name: str
    size_bytes: int
    duration: float
    mime_type: str = "application/octet-stream"

    @property
    def base_name(self) -> str:
        return Path(self.name).stem

    @property
    def extension(self) -> str:
        return Path(self.name).suffix


def guess_mime_type(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    return mime or "application/octet-stream"


@dataclass(frozen=True)
class Window:
    """A contiguous [start, start + duration) slice of the source timeline."""

    start: float
    duration: float
    index: int

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass
class OutputArtifact:
    """One produced part, held on disk until downloaded or discarded."""

    name: str
    path: Path
    size_bytes: int
    index: int
    download_url: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "index": self.index,
            "size_bytes": self.size_bytes,
            "download_url": self.download_url,
        }


def format_duration(seconds: float) -> str:
    """Human readable duration, e.g. ``1h 2m 3s`` / ``4m 5s`` / ``6s``."""
    if not seconds or seconds < 0:
        return "0s"
    h = int(seconds // 3600)
    m = int((seconds % 3600) // 60)
    s = int(seconds % 60)
    if h > 0:
        return f"{h}h {m}m {s}s"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"
