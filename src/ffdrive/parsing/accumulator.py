"""Per-run state machine folding line updates into cumulative knowledge."""

import logging

from pydantic import BaseModel, Field

from ffdrive.models.errors import RunStateError
from ffdrive.models.events import ConversionComplete, ProbeComplete, ProgressSnapshot
from ffdrive.models.media import AudioStream, Metadata, VideoStream
from ffdrive.models.run import Channel, LogLine, RunOutcome, render_transcript
from ffdrive.parsing.patterns import find_completion
from ffdrive.parsing.probe import parse_probe_output
from ffdrive.parsing.updates import (
    AudioStreamUpdate,
    DurationUpdate,
    ErrorMarkerUpdate,
    ProgressUpdate,
    Section,
    SectionUpdate,
    Update,
    VideoStreamUpdate,
)

logger = logging.getLogger(__name__)


class RunState(BaseModel):
    """Mutable state of one supervised run."""

    lines: list[LogLine] = Field(default_factory=list)
    total_duration: float | None = Field(default=None, ge=0)
    progress: ProgressSnapshot | None = None
    section: Section | None = None
    input_video: VideoStream | None = None
    input_audio: AudioStream | None = None
    output_video: VideoStream | None = None
    output_audio: AudioStream | None = None
    error_markers: list[str] = Field(default_factory=list)
    outcome: RunOutcome = Field(default=RunOutcome.RUNNING)
    completed: bool = Field(default=False, description="A completion result was produced")


class RunAccumulator:
    """Folds updates into a RunState and decides which notifications fire.

    One instance per run; it must not be shared or reused.
    """

    def __init__(self):
        self.state = RunState()

    def record(self, line: LogLine) -> None:
        """Append a captured line to the transcript."""
        self._ensure_running()
        self.state.lines.append(line)

    def transcript(self, channel: Channel | None = None) -> str:
        return render_transcript(self.state.lines, channel)

    def fold(self, update: Update) -> ProgressSnapshot | None:
        """Apply one update. Returns a snapshot for every progress update."""
        self._ensure_running()
        state = self.state

        if isinstance(update, SectionUpdate):
            state.section = update.section
        elif isinstance(update, DurationUpdate):
            # First match wins; later duration-shaped lines are not authoritative
            if state.total_duration is None:
                state.total_duration = update.seconds
        elif isinstance(update, VideoStreamUpdate):
            if update.section == Section.OUTPUT:
                state.output_video = state.output_video or update.stream
            else:
                state.input_video = state.input_video or update.stream
        elif isinstance(update, AudioStreamUpdate):
            if update.section == Section.OUTPUT:
                state.output_audio = state.output_audio or update.stream
            else:
                state.input_audio = state.input_audio or update.stream
        elif isinstance(update, ErrorMarkerUpdate):
            state.error_markers.append(update.marker)
            logger.warning("Transcoder reported '%s': %s", update.marker, update.line)
        elif isinstance(update, ProgressUpdate):
            state.progress = self._snapshot(update)
            return state.progress
        return None

    def _snapshot(self, update: ProgressUpdate) -> ProgressSnapshot:
        total = self.state.total_duration
        fraction = None
        if total and update.processed_duration is not None:
            fraction = min(1.0, max(0.0, update.processed_duration / total))
        return ProgressSnapshot(**update.model_dump(), total_duration=total, fraction=fraction)

    def complete_conversion(self) -> ConversionComplete | None:
        """Detect the completion summary in the diagnostic transcript.

        Produces a result at most once per run.
        """
        self._ensure_running()
        if self.state.completed:
            return None
        summary = find_completion(self.transcript(Channel.STDERR))
        if summary is None:
            return None

        state = self.state
        video = state.output_video or state.input_video
        total = state.total_duration
        if total is None:
            total = summary.processed_duration
        state.completed = True
        return ConversionComplete(
            total_duration=total,
            frame=summary.frame,
            fps=summary.fps,
            size_kb=summary.size_kb,
            bitrate=summary.bitrate,
            width=video.width if video else None,
            height=video.height if video else None,
        )

    def complete_probe(self) -> ProbeComplete | None:
        """Parse the prober document from the stdout transcript.

        Produces a result at most once per run.

        Raises:
            ValueError: no probe document was produced.
        """
        self._ensure_running()
        if self.state.completed:
            return None
        probe = parse_probe_output(self.transcript(Channel.STDOUT))
        self.state.completed = True
        return probe

    def metadata(self) -> Metadata:
        """Metadata detected for the run's input."""
        return Metadata(
            duration=self.state.total_duration,
            video=self.state.input_video,
            audio=self.state.input_audio,
        )

    def succeed(self) -> None:
        self._transition(RunOutcome.SUCCEEDED)

    def fail(self) -> None:
        self._transition(RunOutcome.FAILED)

    def _transition(self, outcome: RunOutcome) -> None:
        self._ensure_running()
        self.state.outcome = outcome

    def _ensure_running(self) -> None:
        if self.state.outcome != RunOutcome.RUNNING:
            raise RunStateError(
                f"Run already {self.state.outcome}; no further updates accepted",
                details={"outcome": str(self.state.outcome)},
            )
