"""Catalog of line-matching rules for transcoder diagnostic output.

Every extractor returns a typed update or ``None``. A line that does not
fit a rule is simply not a match; extractors never raise on odd input.
"""

import re
from collections.abc import Callable
from typing import NamedTuple

from ffdrive.models.media import AudioStream, VideoStream
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

_TIMESPAN = re.compile(r"^(-)?(\d+):([0-5]?\d):(\d+(?:\.\d+)?)$")

_SECTION = re.compile(r"^\s*(Input|Output) #\d+,")
_DURATION = re.compile(r"Duration:\s*([^,]+),")
_VIDEO = re.compile(
    r"Stream #\S+.*?Video:\s*(?P<codec>[^,]*),"
    r"(?:\s*(?P<color>.*?),)?\s*(?P<width>\d{2,})x(?P<height>\d{2,})\b"
)
_AUDIO = re.compile(
    r"Stream #\S+.*?Audio:\s*(?P<codec>[^,]*),\s*(?P<rate>\d+) Hz,\s*(?P<channels>[^,]*)"
)
_STREAM_FPS = re.compile(r"(\d+(?:\.\d+)?)(k?)\s*fps\b")
_STREAM_TBR = re.compile(r"(\d+(?:\.\d+)?)(k?)\s*tbr\b")
_STREAM_BITRATE = re.compile(r"(\d+)\s*kb/s")

_FRAME = re.compile(r"\bframe=\s*(\d+)")
_FPS = re.compile(r"\bfps=\s*(\d+(?:\.\d+)?)")
_QUALITY = re.compile(r"\bq=\s*(-?\d+(?:\.\d+)?)")
_SIZE = re.compile(r"(?<![A-Za-z])L?size=\s*(\d+)\s*[kK]i?B")
_TIME = re.compile(r"\btime=\s*(\S+)")
_BITRATE = re.compile(r"\bbitrate=\s*(\d+(?:\.\d+)?)\s*kbits/s")
_SPEED = re.compile(r"\bspeed=\s*(\d+(?:\.\d+)?)x")

# Final summary markers: legacy "Lsize=" status line, or the modern trailer
_LEGACY_SUMMARY = re.compile(r"(?<![A-Za-z])Lsize=")
MUXING_OVERHEAD = "muxing overhead"

ERROR_MARKERS = (
    "Unknown encoder",
    "Unknown decoder",
    "No such file or directory",
    "Invalid data found when processing input",
    "Error while opening encoder",
    "Unrecognized option",
    "Permission denied",
    "Conversion failed!",
)


class Matcher(NamedTuple):
    """A named line rule."""

    name: str
    extract: Callable[[str], Update | None]


def parse_timespan(text: str) -> float | None:
    """Parse ``[-]HH:MM:SS[.fff]`` into seconds."""
    match = _TIMESPAN.match(text.strip())
    if not match:
        return None
    seconds = int(match.group(2)) * 3600 + int(match.group(3)) * 60 + float(match.group(4))
    return -seconds if match.group(1) else seconds


def _float(match: re.Match | None) -> float | None:
    if match is None:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def _rate(match: re.Match | None) -> float | None:
    """Stream rate such as ``25 fps`` or ``1k tbr`` (1000)."""
    value = _float(match)
    if value is not None and match.group(2):
        value *= 1000
    return value


def _int(match: re.Match | None) -> int | None:
    return int(match.group(1)) if match else None


def match_section(line: str) -> SectionUpdate | None:
    match = _SECTION.match(line)
    if not match:
        return None
    section = Section.INPUT if match.group(1) == "Input" else Section.OUTPUT
    return SectionUpdate(section=section)


def match_duration(line: str) -> DurationUpdate | None:
    match = _DURATION.search(line)
    if not match:
        return None
    seconds = parse_timespan(match.group(1))
    if seconds is None or seconds < 0:
        return None
    return DurationUpdate(seconds=seconds)


def match_video_stream(line: str) -> VideoStreamUpdate | None:
    match = _VIDEO.search(line)
    if not match:
        return None
    width, height = int(match.group("width")), int(match.group("height"))
    if width <= 0 or height <= 0:
        return None
    tail = line[match.end() :]
    fps = _rate(_STREAM_FPS.search(tail)) or _rate(_STREAM_TBR.search(tail))
    stream = VideoStream(
        codec=match.group("codec").strip(),
        color_model=(match.group("color") or "").strip(),
        width=width,
        height=height,
        fps=fps or None,
        bitrate_kbs=_int(_STREAM_BITRATE.search(tail)),
    )
    return VideoStreamUpdate(stream=stream)


def match_audio_stream(line: str) -> AudioStreamUpdate | None:
    match = _AUDIO.search(line)
    if not match:
        return None
    stream = AudioStream(
        codec=match.group("codec").strip(),
        sample_rate=int(match.group("rate")),
        channel_output=match.group("channels").strip(),
        bitrate_kbs=_int(_STREAM_BITRATE.search(line[match.end() :])),
    )
    return AudioStreamUpdate(stream=stream)


def match_progress(line: str) -> ProgressUpdate | None:
    """Extract a progress line. Needs a ``time=`` or ``size=`` key and one parsed field."""
    if "time=" not in line and "size=" not in line:
        return None
    time_match = _TIME.search(line)
    update = ProgressUpdate(
        frame=_int(_FRAME.search(line)),
        fps=_float(_FPS.search(line)),
        quality=_float(_QUALITY.search(line)),
        size_kb=_int(_SIZE.search(line)),
        bitrate=_float(_BITRATE.search(line)),
        processed_duration=parse_timespan(time_match.group(1)) if time_match else None,
        speed=_float(_SPEED.search(line)),
    )
    if all(value is None for value in update.model_dump().values()):
        return None
    return update


def match_error_marker(line: str) -> ErrorMarkerUpdate | None:
    for marker in ERROR_MARKERS:
        if marker in line:
            return ErrorMarkerUpdate(marker=marker, line=line)
    return None


CATALOG: tuple[Matcher, ...] = (
    Matcher("section", match_section),
    Matcher("duration", match_duration),
    Matcher("video_stream", match_video_stream),
    Matcher("audio_stream", match_audio_stream),
    Matcher("progress", match_progress),
    Matcher("error_marker", match_error_marker),
)


def find_completion(transcript: str) -> ProgressUpdate | None:
    """Find the run-completion summary in a full diagnostic transcript.

    Returns the figures of the last progress line carrying a size, provided
    the transcript also holds a final summary marker.
    """
    if not (_LEGACY_SUMMARY.search(transcript) or MUXING_OVERHEAD in transcript):
        return None
    summary = None
    for line in transcript.splitlines():
        update = match_progress(line)
        if update is not None and update.size_kb is not None:
            summary = update
    return summary
