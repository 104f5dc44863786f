"""Boundary planner: turns a split spec into ordered time windows."""

import math

from mediasplit.errors import EmptyInputError, InvalidSplitSpecError
from mediasplit.manifest import DurationSpec, PartsSpec, SizeSpec, SplitSpec
from mediasplit.models import Window

MB = 1024 * 1024
EPSILON = 1e-6


def part_count(total_duration: float, total_size_bytes: int, spec: SplitSpec) -> int:
    """Number of parts ``spec`` produces for a file of the given size/duration."""
    if isinstance(spec, PartsSpec):
        return spec.count
    if isinstance(spec, SizeSpec):
        return max(1, math.ceil((total_size_bytes / MB) / spec.target_mb))
    if isinstance(spec, DurationSpec):
        return max(1, math.ceil(total_duration / spec.target_seconds))
    raise InvalidSplitSpecError(f"Unsupported split spec: {spec!r}")


def _equal_boundaries(total_duration: float, parts: int) -> list[float]:
    step = total_duration / parts
    return [i * step for i in range(parts)] + [total_duration]


def _fixed_boundaries(total_duration: float, step: float, parts: int) -> list[float]:
    bounds = [min(i * step, total_duration) for i in range(parts)] + [total_duration]
    # Float drift in ceil() can leave a sliver at the end; fold it into the previous part
    if len(bounds) > 2 and bounds[-1] - bounds[-2] <= EPSILON:
        bounds.pop(-2)
    return bounds


def _windows(bounds: list[float], total_duration: float, overlap: float) -> list[Window]:
    last = len(bounds) - 2
    windows: list[Window] = []
    for i in range(len(bounds) - 1):
        start = bounds[i] - (overlap / 2 if i > 0 else 0.0)
        end = bounds[i + 1] + (overlap / 2 if i < last else 0.0)
        start = max(0.0, start)
        end = min(total_duration, end)
        if end - start <= 0:
            continue
        windows.append(Window(start=start, duration=end - start, index=len(windows)))
    return windows


def plan(
    total_duration: float,
    total_size_bytes: int,
    spec: SplitSpec,
    overlap_ratio: float = 0.0,
) -> list[Window]:
    """Compute the ordered windows covering ``[0, total_duration]``.

    With the default ``overlap_ratio`` of 0 the windows are contiguous and
    non-overlapping. A non-zero ratio widens every interior boundary by
    ``total_duration * overlap_ratio / 2`` on each side.

    Raises:
        EmptyInputError: ``total_duration`` is zero or negative.
        InvalidSplitSpecError: the spec is malformed or below its minimum.
    """
    if total_duration is None or total_duration <= 0:
        raise EmptyInputError("Media duration is zero; nothing to split")
    if not hasattr(spec, "validate"):
        raise InvalidSplitSpecError(f"Unsupported split spec: {spec!r}")
    spec.validate()
    if not 0.0 <= overlap_ratio < 0.5:
        raise InvalidSplitSpecError(f"Overlap ratio must be in [0, 0.5), got {overlap_ratio!r}")

    parts = part_count(total_duration, total_size_bytes, spec)
    if isinstance(spec, DurationSpec):
        bounds = _fixed_boundaries(total_duration, spec.target_seconds, parts)
    else:
        bounds = _equal_boundaries(total_duration, parts)

    windows = _windows(bounds, total_duration, total_duration * overlap_ratio)
    if not windows:
        raise EmptyInputError("Split produced no windows")
    return windows


def estimate_part_bytes(window: Window, total_duration: float, total_size_bytes: int) -> int:
    """Proportional size estimate for one window (assumes constant bitrate)."""
    if total_duration <= 0:
        return 0
    return round(total_size_bytes * window.duration / total_duration)
