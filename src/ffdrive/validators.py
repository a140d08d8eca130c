"""Executable and input validation performed before a process is spawned."""

import shutil
from pathlib import Path

from ffdrive.models.errors import ConfigurationError, ValidationError
from ffdrive.models.media import MediaFile


def resolve_executable(path: str, name: str) -> str:
    """Return a usable path to an executable, searching PATH for bare names."""
    if not path or not path.strip():
        raise ConfigurationError(f"No path configured for {name}", details={"tool": name})
    candidate = Path(path)
    if candidate.is_file():
        return str(candidate)
    found = shutil.which(path)
    if found is None:
        raise ConfigurationError(
            f"Unable to locate {name} executable. Make sure it exists at '{path}'",
            details={"tool": name, "path": path},
        )
    return found


def validate_input_file(media_file: MediaFile, remote_prefixes: list[str]) -> None:
    """Ensure the input exists locally or is a recognised remote locator."""
    if media_file.is_remote(remote_prefixes):
        return
    if not Path(media_file.filename).is_file():
        raise ValidationError(
            f"Input file not found: {media_file.filename}",
            details={"file": media_file.filename},
        )


def validate_custom_arguments(arguments: str) -> None:
    if not arguments or not arguments.strip():
        raise ValidationError("Custom command arguments must not be blank")
