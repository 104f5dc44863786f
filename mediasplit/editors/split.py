"""Segment processor: renders one window of the source into an output file."""

import logging
import subprocess
from pathlib import Path

from mediasplit.errors import SegmentFailureError, stderr_tail
from mediasplit.ffutil import EngineCommand, MediaEngine
from mediasplit.manifest import EncodingPolicy
from mediasplit.models import MediaFile, OutputArtifact, Window

logger = logging.getLogger(__name__)


def output_name(base_name: str, extension: str, index: int) -> str:
    """``{n}_{base}_{n}{ext}`` with a 1-based part number on both sides."""
    n = index + 1
    return f"{n}_{base_name}_{n}{extension}"


def process_window(
    engine: MediaEngine,
    source: MediaFile,
    window: Window,
    policy: EncodingPolicy,
    output_dir: Path,
) -> OutputArtifact:
    """Cut ``window`` out of ``source`` and write it under ``output_dir``."""
    name = output_name(source.base_name, source.extension, window.index)
    command = EngineCommand(
        input_path=source.path,
        start=window.start,
        duration=window.duration,
        policy=policy,
        output_name=name,
    )

    try:
        data = engine.submit(command)
    except subprocess.CalledProcessError as e:
        raise SegmentFailureError(window.index, stderr_tail(e) or str(e)) from e
    except OSError as e:
        raise SegmentFailureError(window.index, str(e)) from e

    if not data:
        raise SegmentFailureError(window.index, "engine produced an empty file")

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / name
    path.write_bytes(data)
    logger.info("Wrote %s (%d bytes, %.3fs from %.3fs)", name, len(data), window.duration, window.start)

    return OutputArtifact(name=name, path=path, size_bytes=len(data), index=window.index)
