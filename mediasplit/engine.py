"""Orchestrator: probes, plans and splits the file described by a manifest."""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from mediasplit import ffutil
from mediasplit.analyzers.boundaries import plan
from mediasplit.editors.split import process_window
from mediasplit.errors import InvalidStateError, UnsupportedFormatError
from mediasplit.ffutil import MediaEngine
from mediasplit.manifest import SplitManifest
from mediasplit.models import MediaFile, OutputArtifact, Window

logger = logging.getLogger(__name__)


class State(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    PLANNING = "planning"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERRORED = "errored"


TERMINAL_STATES = (State.COMPLETE, State.ERRORED)


@dataclass
class SplitResult:
    source: MediaFile
    windows: list[Window] = field(default_factory=list)
    artifacts: list[OutputArtifact] = field(default_factory=list)

    @property
    def total_bytes(self) -> int:
        return sum(a.size_bytes for a in self.artifacts)


class Orchestrator:
    """Drives one split at a time through Probing → Planning → Processing.

    ``on_progress(stage, percent)`` fires on entering each window and on
    completion; ``on_state(state, index)`` fires on every transition.
    """

    def __init__(
        self,
        engine: MediaEngine | None = None,
        on_progress: Callable[[str, int], None] | None = None,
        on_state: Callable[[State, int | None], None] | None = None,
    ):
        self.engine = engine
        self.on_progress = on_progress
        self.on_state = on_state
        self.state = State.IDLE
        self.index: int | None = None
        self.total = 0
        self.history: list[tuple[State, int | None]] = []
        self.result: SplitResult | None = None
        self.error: Exception | None = None
        self._cancelled = False

    def _transition(self, state: State, index: int | None = None) -> None:
        self.state = state
        self.index = index
        self.history.append((state, index))
        if index is None:
            logger.info("Split state -> %s", state.value)
        else:
            logger.info("Split state -> %s (%d of %d)", state.value, index + 1, self.total)
        if self.on_state:
            self.on_state(state, index)

    def _progress(self, stage: str, percent: int) -> None:
        if self.on_progress and not self._cancelled:
            self.on_progress(stage, percent)

    def run(self, manifest: SplitManifest) -> SplitResult:
        if self.state != State.IDLE:
            raise InvalidStateError(f"Cannot start a split while {self.state.value}; reset first")

        self._cancelled = False
        self.error = None
        artifacts: list[OutputArtifact] = []
        try:
            self._transition(State.PROBING)
            with ffutil.engine_session(self.engine) as engine:
                source = ffutil.probe_media(manifest.input, name=manifest.source_name)
                if source.duration <= 0:
                    raise UnsupportedFormatError(f"Could not determine the duration of {source.name}")

                self._transition(State.PLANNING)
                windows = plan(
                    source.duration,
                    source.size_bytes,
                    manifest.split,
                    overlap_ratio=manifest.overlap_ratio,
                )
                self.total = len(windows)

                for window in windows:
                    self._transition(State.PROCESSING, window.index)
                    self._progress(
                        f"Splitting part {window.index + 1} of {self.total}",
                        math.floor(window.index / self.total * 100 + 0.5),
                    )
                    artifacts.append(
                        process_window(engine, source, window, manifest.encoding, manifest.output_dir)
                    )
        except Exception as e:
            _discard(artifacts)
            self.error = e
            self._transition(State.ERRORED)
            logger.error("Split of %s failed: %s", manifest.input, e)
            raise

        self.result = SplitResult(source=source, windows=windows, artifacts=artifacts)
        self._transition(State.COMPLETE)
        self._progress("Done", 100)
        return self.result

    def cancel(self) -> None:
        """Stop reporting progress. The window in flight still runs to completion."""
        self._cancelled = True

    def reset(self, discard: bool = True) -> None:
        """Return to IDLE from a terminal state, releasing held artifacts."""
        if self.state not in TERMINAL_STATES and self.state != State.IDLE:
            raise InvalidStateError(f"Cannot reset while {self.state.value}")
        if discard and self.result is not None:
            _discard(self.result.artifacts)
        self.result = None
        self.error = None
        self.total = 0
        self.history.clear()
        self.state = State.IDLE
        self.index = None


def _discard(artifacts: list[OutputArtifact]) -> None:
    for artifact in artifacts:
        artifact.path.unlink(missing_ok=True)
    artifacts.clear()


def process(
    manifest: SplitManifest,
    on_progress: Callable[[str, int], None] | None = None,
) -> SplitResult:
    """Run a complete split.

    Args:
        manifest: Split manifest.
        on_progress: Optional callback(stage_name, percent_complete).
    """
    return Orchestrator(on_progress=on_progress).run(manifest)
