"""Classify single lines of tool output into typed updates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ffdrive.models.errors import ClassificationError
from ffdrive.parsing.patterns import CATALOG
from ffdrive.parsing.updates import AudioStreamUpdate, Update, VideoStreamUpdate

if TYPE_CHECKING:
    from ffdrive.parsing.accumulator import RunState


def classify_line(line: str, state: RunState) -> list[Update]:
    """Apply the pattern catalog to one line.

    The state is read-only context: once a duration is known the duration
    rule is skipped, and stream descriptors are tagged with the section
    (input or output) they appear under. Any internal error surfaces as a
    ClassificationError chained to the original exception.
    """
    if not line or line.isspace():
        return []

    try:
        updates: list[Update] = []
        for matcher in CATALOG:
            if matcher.name == "duration" and state.total_duration is not None:
                continue
            update = matcher.extract(line)
            if update is None:
                continue
            if isinstance(update, (VideoStreamUpdate, AudioStreamUpdate)):
                update = update.model_copy(update={"section": state.section})
            updates.append(update)
        return updates
    except Exception as e:
        raise ClassificationError(
            f"Failed to classify line: {e}",
            line=line,
            details={"line": line[:200], "error": str(e)},
        ) from e
