"""Invocation, outcome and failure models for supervised runs."""

import shlex
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from ffdrive.models.events import ConversionComplete, ProbeComplete
from ffdrive.models.media import MediaFile, Metadata


class Tool(StrEnum):
    """External executable driven by a run."""

    TRANSCODER = "transcoder"
    PROBER = "prober"


class Task(StrEnum):
    """What a run is asked to do."""

    CONVERT = "convert"
    GET_METADATA = "get_metadata"
    PROBE_METADATA = "probe_metadata"
    GET_THUMBNAIL = "get_thumbnail"
    CUSTOM = "custom"


class Channel(StrEnum):
    """Output channel of the child process."""

    STDOUT = "stdout"
    STDERR = "stderr"


class RunOutcome(StrEnum):
    """Terminal state of a run."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class InvocationRequest(BaseModel):
    """Everything needed to spawn one child process."""

    model_config = ConfigDict(frozen=True)

    tool: Tool
    task: Task
    executable: str = Field(..., min_length=1)
    arguments: str = Field(default="", description="Fully serialized argument string")
    input_file: MediaFile | None = None
    output_file: MediaFile | None = None

    @property
    def argv(self) -> list[str]:
        return [self.executable, *shlex.split(self.arguments)]


class LogLine(BaseModel):
    """One captured line, tagged with the channel it arrived on."""

    model_config = ConfigDict(frozen=True)

    channel: Channel
    text: str


def render_transcript(lines: list[LogLine], channel: Channel | None = None) -> str:
    """Join captured lines in arrival order, optionally for one channel only."""
    return "".join(
        line.text + "\n" for line in lines if channel is None or line.channel == channel
    )


class FailureRecord(BaseModel):
    """Everything known about a failed run."""

    model_config = ConfigDict(frozen=True)

    transcript: str = ""
    lines: list[LogLine] = Field(default_factory=list)
    exit_code: int | None = None
    terminated: bool = Field(default=False, description="The child was force-killed")
    timed_out: bool = False
    cancelled: bool = False
    fault: str | None = Field(default=None, description="Classification fault, if any")
    error_markers: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{self.exit_code}: {self.transcript}"


class RunResult(BaseModel):
    """Outcome of a run that did not fail."""

    outcome: RunOutcome = RunOutcome.SUCCEEDED
    exit_code: int = 0
    transcript: str = ""
    conversion: ConversionComplete | None = None
    probe: ProbeComplete | None = None
    metadata: Metadata | None = None
