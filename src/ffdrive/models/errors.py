"""Error hierarchy for ffdrive."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ffdrive.models.run import FailureRecord


class FFDriveError(Exception):
    """Base error for all ffdrive errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class ConfigurationError(FFDriveError):
    """A required executable or setting is missing."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="configuration", details=details)


class ValidationError(FFDriveError):
    """Invalid input detected before any process is spawned."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class ProcessLaunchError(FFDriveError):
    """The operating system could not start the child process."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="process", details=details)


class ClassificationError(FFDriveError):
    """An internal error while classifying a line of tool output."""

    def __init__(self, message: str, line: str = "", details: dict | None = None):
        super().__init__(message, component="parsing", details=details)
        self.line = line


class RunStateError(FFDriveError):
    """Run state was mutated after reaching a terminal outcome."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="parsing", details=details)


class TranscodeError(FFDriveError):
    """A supervised run failed. Carries the full failure record."""

    def __init__(self, failure: FailureRecord):
        super().__init__(
            failure.message,
            component="process",
            details={
                "exit_code": failure.exit_code,
                "terminated": failure.terminated,
                "timed_out": failure.timed_out,
                "cancelled": failure.cancelled,
                "fault": failure.fault,
            },
        )
        self.failure = failure

    @property
    def exit_code(self) -> int | None:
        return self.failure.exit_code
