"""Hypothesis strategies for transcoder transcripts."""

from hypothesis import strategies as st


def format_timespan(seconds: float) -> str:
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{int(hours):02d}:{int(minutes):02d}:{secs:05.2f}"


def duration_line(seconds: float) -> str:
    return f"  Duration: {format_timespan(seconds)}, start: 0.000000, bitrate: 900 kb/s"


def progress_line(frame: int, size_kb: int, seconds: float, bitrate: float) -> str:
    return (
        f"frame={frame:5d} fps= 25 q=28.0 size={size_kb:8d}kB "
        f"time={format_timespan(seconds)} bitrate={bitrate:6.1f}kbits/s speed=1.0x"
    )


@st.composite
def progress_transcripts(draw, min_lines=0, max_lines=30):
    """One duration line followed by N progress lines with non-decreasing time."""
    total = round(draw(st.floats(min_value=1.0, max_value=7200.0)), 2)
    n = draw(st.integers(min_value=min_lines, max_value=max_lines))
    times = sorted(
        round(t, 2)
        for t in draw(st.lists(st.floats(min_value=0.0, max_value=total), min_size=n, max_size=n))
    )
    lines = [duration_line(total)]
    for i, t in enumerate(times):
        lines.append(
            progress_line(
                frame=(i + 1) * 25,
                size_kb=draw(st.integers(min_value=0, max_value=10_000_000)),
                seconds=t,
                bitrate=draw(st.floats(min_value=0.0, max_value=99_999.0)),
            )
        )
    return total, n, "\n".join(lines) + "\n"
