"""Media file and stream metadata models."""

from pydantic import BaseModel, Field


class VideoStream(BaseModel):
    """Video stream properties reported by the transcoder."""

    codec: str = Field(..., description="Codec description, e.g. 'h264 (High)'")
    color_model: str = Field(default="", description="Pixel format and color details")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    fps: float | None = Field(default=None, gt=0)
    bitrate_kbs: int | None = Field(default=None, ge=0)

    @property
    def frame_size(self) -> str:
        return f"{self.width}x{self.height}"


class AudioStream(BaseModel):
    """Audio stream properties reported by the transcoder."""

    codec: str = Field(..., description="Codec description, e.g. 'aac (LC)'")
    sample_rate: int = Field(..., ge=0, description="Sample rate in Hz")
    channel_output: str = Field(default="", description="Channel layout, e.g. 'stereo'")
    bitrate_kbs: int | None = Field(default=None, ge=0)


class Metadata(BaseModel):
    """Metadata detected for a media file."""

    duration: float | None = Field(default=None, ge=0, description="Duration in seconds")
    video: VideoStream | None = None
    audio: AudioStream | None = None


class MediaFile(BaseModel):
    """A media file (or remote locator) taking part in a run."""

    filename: str = Field(..., min_length=1)
    metadata: Metadata | None = None

    def is_remote(self, prefixes: list[str]) -> bool:
        return any(self.filename.startswith(prefix) for prefix in prefixes)
