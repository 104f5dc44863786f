"""JSON manifest schema: the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from mediasplit.errors import InvalidSplitSpecError

MIN_PARTS = 2
MIN_TARGET_MB = 1.0
MIN_TARGET_SECONDS = 10.0


@dataclass(frozen=True)
class PartsSpec:
    """Split into ``count`` equal-duration parts."""

    count: int

    def validate(self) -> None:
        if not isinstance(self.count, int) or self.count < MIN_PARTS:
            raise InvalidSplitSpecError(f"Part count must be an integer >= {MIN_PARTS}, got {self.count!r}")


@dataclass(frozen=True)
class SizeSpec:
    """Split into parts of roughly ``target_mb`` megabytes each."""

    target_mb: float

    def validate(self) -> None:
        if self.target_mb < MIN_TARGET_MB:
            raise InvalidSplitSpecError(f"Target size must be >= {MIN_TARGET_MB:g} MB, got {self.target_mb!r}")


@dataclass(frozen=True)
class DurationSpec:
    """Split into parts of ``target_seconds`` each; the last part takes the rest."""

    target_seconds: float

    def validate(self) -> None:
        if self.target_seconds < MIN_TARGET_SECONDS:
            raise InvalidSplitSpecError(
                f"Target duration must be >= {MIN_TARGET_SECONDS:g}s, got {self.target_seconds!r}"
            )


SplitSpec = PartsSpec | SizeSpec | DurationSpec


@dataclass(frozen=True)
class StreamCopy:
    """Copy streams verbatim. Fast; cuts snap to keyframes."""


@dataclass(frozen=True)
class ReEncode:
    """Re-encode every window. Slow; frame-accurate cuts."""

    video_crf: int = 23
    audio_bitrate: str = "128k"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    preset: str = "veryfast"


EncodingPolicy = StreamCopy | ReEncode


@dataclass
class SplitManifest:
    """Top-level split manifest."""

    input: Path
    output_dir: Path
    split: SplitSpec = field(default_factory=lambda: PartsSpec(2))
    encoding: EncodingPolicy = field(default_factory=StreamCopy)
    overlap_ratio: float = 0.0
    source_name: str | None = None
    version: str = "1"


def split_spec_from_dict(data: dict) -> SplitSpec:
    """Build a SplitSpec from ``{"mode": "parts"|"size"|"time", ...}``.

    Only the shape is checked here; policy minimums are enforced by
    ``SplitSpec.validate`` when the spec is planned.
    """
    mode = data.get("mode", "parts")
    try:
        if mode == "parts":
            count = float(data["count"])
            if not count.is_integer():
                raise ValueError(f"part count must be a whole number, got {data['count']!r}")
            return PartsSpec(count=int(count))
        if mode == "size":
            return SizeSpec(target_mb=float(data["target_mb"]))
        if mode == "time":
            return DurationSpec(target_seconds=float(data["target_seconds"]))
    except KeyError as e:
        raise InvalidSplitSpecError(f"Split mode '{mode}' requires '{e.args[0]}'") from e
    except (TypeError, ValueError) as e:
        raise InvalidSplitSpecError(f"Invalid value for split mode '{mode}': {e}") from e
    raise InvalidSplitSpecError(f"Unknown split mode: {mode!r}")


def encoding_from_dict(data: dict | None) -> EncodingPolicy:
    data = data or {}
    mode = data.get("mode", "copy")
    if mode == "copy":
        return StreamCopy()
    if mode == "reencode":
        opts = {k: v for k, v in data.items() if k != "mode"}
        try:
            if "video_crf" in opts:
                opts["video_crf"] = int(opts["video_crf"])
            return ReEncode(**opts)
        except (TypeError, ValueError) as e:
            raise InvalidSplitSpecError(f"Invalid re-encode options: {e}") from e
    raise InvalidSplitSpecError(f"Unknown encoding mode: {mode!r}")


def load_manifest(path: str | Path) -> SplitManifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data:
        raise ValueError("Manifest must contain an 'input' field")

    input_path = Path(data["input"])
    output_dir = Path(data["output_dir"]) if "output_dir" in data else input_path.parent / f"{input_path.stem}_parts"

    return SplitManifest(
        version=data.get("version", "1"),
        input=input_path,
        output_dir=output_dir,
        split=split_spec_from_dict(data.get("split", {"mode": "parts", "count": 2})),
        encoding=encoding_from_dict(data.get("encoding")),
        overlap_ratio=float(data.get("overlap_ratio", 0.0)),
    )
