"""Error kinds surfaced by the split pipeline."""

import subprocess


class UnsupportedFormatError(ValueError):
    """ffprobe could not read the file, or its duration is unknown."""


class EmptyInputError(ValueError):
    """Nothing to split: zero duration or a degenerate split spec."""


class InvalidSplitSpecError(EmptyInputError):
    pass


class EngineLoadError(RuntimeError):
    """The media engine could not be bootstrapped. Fatal for the process."""


class SegmentFailureError(RuntimeError):
    """One window failed to process; the whole operation is aborted."""

    def __init__(self, index: int, detail: str = ""):
        self.index = index
        self.detail = detail
        msg = f"Part {index + 1} failed"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class InvalidStateError(RuntimeError):
    pass


def stderr_tail(error: subprocess.CalledProcessError, limit: int = 500) -> str:
    stderr = error.stderr
    if isinstance(stderr, bytes):
        stderr = stderr.decode(errors="replace")
    return (stderr or "").strip()[-limit:]


def user_message(error: BaseException) -> str:
    """Render an error as the single line shown to the user."""
    if isinstance(error, subprocess.CalledProcessError):
        tail = stderr_tail(error)
        return f"ffmpeg failed: {tail}" if tail else str(error)
    if isinstance(error, UnsupportedFormatError):
        return f"Unsupported media file: {error}"
    if isinstance(error, EngineLoadError):
        return f"Media engine unavailable: {error}"
    return str(error) or error.__class__.__name__
