"""Data models for ffdrive."""

from ffdrive.models.errors import (
    ClassificationError,
    ConfigurationError,
    FFDriveError,
    ProcessLaunchError,
    RunStateError,
    TranscodeError,
    ValidationError,
)
from ffdrive.models.events import ConversionComplete, Notification, ProbeComplete, ProgressSnapshot
from ffdrive.models.media import AudioStream, MediaFile, Metadata, VideoStream
from ffdrive.models.options import ConversionOptions
from ffdrive.models.run import (
    Channel,
    FailureRecord,
    InvocationRequest,
    LogLine,
    RunOutcome,
    RunResult,
    Task,
    Tool,
)

__all__ = [
    "AudioStream",
    "Channel",
    "ClassificationError",
    "ConfigurationError",
    "ConversionComplete",
    "ConversionOptions",
    "FFDriveError",
    "FailureRecord",
    "InvocationRequest",
    "LogLine",
    "MediaFile",
    "Metadata",
    "Notification",
    "ProbeComplete",
    "ProcessLaunchError",
    "ProgressSnapshot",
    "RunOutcome",
    "RunResult",
    "RunStateError",
    "Task",
    "Tool",
    "TranscodeError",
    "ValidationError",
    "VideoStream",
]
