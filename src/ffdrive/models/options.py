"""Conversion option models."""

from pydantic import BaseModel, Field, model_validator


class ConversionOptions(BaseModel):
    """High-level options mapped onto transcoder arguments."""

    seek: float | None = Field(default=None, ge=0, description="Input seek position in seconds")
    max_duration: float | None = Field(default=None, gt=0, description="Output length limit")
    video_codec: str | None = None
    audio_codec: str | None = None
    video_bitrate: int | None = Field(default=None, gt=0, description="Video bitrate in kbit/s")
    audio_bitrate: int | None = Field(default=None, gt=0, description="Audio bitrate in kbit/s")
    audio_sample_rate: int | None = Field(default=None, gt=0, description="Sample rate in Hz")
    video_fps: float | None = Field(default=None, gt=0)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    aspect_ratio: str | None = Field(default=None, description="Display aspect, e.g. '16:9'")
    crf: int | None = Field(default=None, ge=0, le=63)
    preset: str | None = None
    extra_args: list[str] = Field(default_factory=list, description="Appended before the output")

    @model_validator(mode="after")
    def validate_frame_size(self) -> "ConversionOptions":
        if (self.width is None) != (self.height is None):
            raise ValueError("width and height must be given together")
        return self
