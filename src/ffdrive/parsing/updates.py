"""Typed partial results extracted from single lines of tool output."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from ffdrive.models.media import AudioStream, VideoStream


class Section(StrEnum):
    """Which side of the run subsequent stream lines describe."""

    INPUT = "input"
    OUTPUT = "output"


class _Update(BaseModel):
    model_config = ConfigDict(frozen=True)


class SectionUpdate(_Update):
    section: Section


class DurationUpdate(_Update):
    seconds: float


class VideoStreamUpdate(_Update):
    stream: VideoStream
    section: Section | None = None


class AudioStreamUpdate(_Update):
    stream: AudioStream
    section: Section | None = None


class ProgressUpdate(_Update):
    """Fields of one progress line; the tool may omit any of them."""

    frame: int | None = None
    fps: float | None = None
    quality: float | None = None
    size_kb: int | None = None
    bitrate: float | None = None
    processed_duration: float | None = None
    speed: float | None = None


class ErrorMarkerUpdate(_Update):
    marker: str
    line: str


Update = (
    SectionUpdate
    | DurationUpdate
    | VideoStreamUpdate
    | AudioStreamUpdate
    | ProgressUpdate
    | ErrorMarkerUpdate
)
