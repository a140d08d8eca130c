"""Notifications published while a run is supervised."""

from pydantic import BaseModel, ConfigDict, Field


class ProgressSnapshot(BaseModel):
    """One point-in-time extraction from a progress line."""

    model_config = ConfigDict(frozen=True)

    frame: int | None = None
    fps: float | None = None
    quality: float | None = None
    size_kb: int | None = None
    bitrate: float | None = Field(default=None, description="Bitrate in kbit/s")
    processed_duration: float | None = Field(default=None, description="Elapsed media time")
    speed: float | None = None
    total_duration: float | None = None
    fraction: float | None = Field(default=None, ge=0, le=1)
    input_file: str | None = None


class ConversionComplete(BaseModel):
    """Final figures of a conversion that ran to completion."""

    model_config = ConfigDict(frozen=True)

    total_duration: float | None = None
    frame: int | None = None
    fps: float | None = None
    size_kb: int | None = None
    bitrate: float | None = None
    width: int | None = None
    height: int | None = None
    input_file: str | None = None
    output_file: str | None = None


class ProbeComplete(BaseModel):
    """Metadata extracted by the prober."""

    model_config = ConfigDict(frozen=True)

    total_duration: float | None = None
    frames: int | None = None
    fps: float | None = None
    size_kb: int | None = None
    bitrate: float | None = None
    width: int | None = None
    height: int | None = None
    input_file: str | None = None


Notification = ProgressSnapshot | ConversionComplete | ProbeComplete
