"""Parse the prober's structured JSON output."""

import json

from ffdrive.models.events import ProbeComplete


def _number(value, cast):
    if value in (None, "", "N/A"):
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None


def parse_frame_rate(value: str | None) -> float | None:
    """Parse a rational frame rate such as ``30000/1001``."""
    if not value:
        return None
    if "/" in str(value):
        num, den = str(value).split("/", 1)
        num_f, den_f = _number(num, float), _number(den, float)
        if num_f is None or not den_f:
            return None
        return num_f / den_f if num_f > 0 else None
    return _number(value, float)


def parse_probe_output(text: str) -> ProbeComplete:
    """Build probe metadata from the prober's stdout.

    Raises:
        ValueError: the output is not a probe document (the completion
            marker is missing).
    """
    if not text.strip():
        raise ValueError("prober produced no output")
    data = json.loads(text)
    if not isinstance(data, dict) or not isinstance(data.get("format"), dict):
        raise ValueError("prober output has no format section")

    fmt = data["format"]
    streams = data.get("streams")
    if not isinstance(streams, list):
        streams = []
    streams = [s for s in streams if isinstance(s, dict)]
    video = next((s for s in streams if s.get("codec_type") == "video"), {})

    size = _number(fmt.get("size"), int)
    bit_rate = _number(fmt.get("bit_rate"), float)

    return ProbeComplete(
        total_duration=_number(fmt.get("duration"), float),
        frames=_number(video.get("nb_frames"), int),
        fps=(
            parse_frame_rate(video.get("avg_frame_rate"))
            or parse_frame_rate(video.get("r_frame_rate"))
        ),
        size_kb=size // 1024 if size is not None else None,
        bitrate=bit_rate / 1000 if bit_rate is not None else None,
        width=_number(video.get("width"), int),
        height=_number(video.get("height"), int),
    )
