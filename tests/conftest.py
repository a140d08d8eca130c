"""Shared test fixtures, canned transcripts and fake tool generators."""

import json
import sys
from pathlib import Path

import pytest

from ffdrive.config import Settings
from ffdrive.models.events import ProgressSnapshot
from ffdrive.models.run import Channel, LogLine
from ffdrive.parsing.accumulator import RunAccumulator
from ffdrive.parsing.classifier import classify_line

CONVERT_TRANSCRIPT = """\
ffmpeg version 6.1 Copyright (c) 2000-2023 the FFmpeg developers
Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'input.mp4':
  Metadata:
    major_brand     : isom
  Duration: 00:01:30.00, start: 0.000000, bitrate: 900 kb/s
  Stream #0:0[0x1](und): Video: h264 (High) (avc1 / 0x31637661), yuv420p(tv, bt709, progressive), 1920x1080 [SAR 1:1 DAR 16:9], 800 kb/s, 25 fps, 25 tbr, 12800 tbn (default)
  Stream #0:1[0x2](und): Audio: aac (LC) (mp4a / 0x6134706D), 48000 Hz, stereo, fltp, 96 kb/s (default)
Stream mapping:
  Stream #0:0 -> #0:0 (h264 (native) -> h264 (libx264))
  Stream #0:1 -> #0:1 (aac (native) -> aac (native))
Output #0, mp4, to 'output.mp4':
  Stream #0:0(und): Video: h264 (avc1 / 0x31637661), yuv420p(tv, bt709, progressive), 1280x720 [SAR 1:1 DAR 16:9], q=2-31, 25 fps, 12800 tbn (default)
  Stream #0:1(und): Audio: aac (LC) (mp4a / 0x6134706D), 48000 Hz, stereo, fltp, 128 kb/s (default)
frame=  750 fps=250 q=28.0 size=     256kB time=00:00:30.00 bitrate=  69.9kbits/s speed=  10x
frame= 1500 fps=250 q=28.0 size=     384kB time=00:01:00.00 bitrate=  52.4kbits/s speed=  10x
frame= 2250 fps=250 q=-1.0 size=     512kB time=00:01:30.00 bitrate= 850.0kbits/s speed=  10x
[out#0/mp4 @ 0x5581] video:480kB audio:30kB subtitle:0kB other streams:0kB global headers:0kB muxing overhead: 0.4%
"""

METADATA_TRANSCRIPT = """\
Input #0, matroska,webm, from 'clip.mkv':
  Duration: 00:00:12.50, start: 0.000000, bitrate: 1500 kb/s
  Stream #0:0: Video: vp9 (Profile 0), yuv420p(tv), 640x360, SAR 1:1 DAR 16:9, 30 fps, 30 tbr, 1k tbn (default)
  Stream #0:1: Audio: opus, 48000 Hz, stereo, fltp (default)
Output #0, ffmetadata, to 'pipe:':
"""

PROBE_DOCUMENT = {
    "streams": [
        {
            "codec_type": "video",
            "width": 1920,
            "height": 1080,
            "nb_frames": "2250",
            "avg_frame_rate": "25/1",
            "r_frame_rate": "25/1",
        },
        {"codec_type": "audio", "sample_rate": "48000"},
    ],
    "format": {"duration": "90.000000", "size": "10485760", "bit_rate": "932067"},
}

FAKE_TOOL_TEMPLATE = """\
#!{python}
import json
import os
import sys
import time

sys.stdout.reconfigure(encoding="utf-8")
sys.stderr.reconfigure(encoding="utf-8")
base = {base!r}
with open(base + ".args.json", "w", encoding="utf-8") as fh:
    json.dump(sys.argv[1:], fh)
with open(base + ".stdout", encoding="utf-8") as fh:
    sys.stdout.write(fh.read())
    sys.stdout.flush()
with open(base + ".stderr", encoding="utf-8") as fh:
    for line in fh:
        sys.stderr.write(line)
        sys.stderr.flush()
if {background}:
    import subprocess
    # Inherits both pipes and leaves the tool's process group
    subprocess.Popen(
        [sys.executable, "-c", "import time; time.sleep(10)"], start_new_session=True
    )
if {close_pipes}:
    os.close(1)
    os.close(2)
time.sleep({sleep})
sys.exit({exit_code})
"""


class FakeTool:
    """Executable stand-in for ffmpeg/ffprobe that replays canned output."""

    def __init__(self, path: Path):
        self.path = path

    @property
    def args(self) -> list[str] | None:
        args_file = Path(str(self.path) + ".args.json")
        if not args_file.exists():
            return None
        return json.loads(args_file.read_text(encoding="utf-8"))

    def __str__(self) -> str:
        return str(self.path)


@pytest.fixture
def fake_tool(tmp_path):
    """Factory writing an executable script that emits the given output."""
    if sys.platform == "win32":
        pytest.skip("fake tools rely on shebang scripts")

    def make(
        name: str = "ffmpeg",
        stderr: str = "",
        stdout: str = "",
        exit_code: int = 0,
        sleep: float = 0.0,
        background: bool = False,
        close_pipes: bool = False,
    ) -> FakeTool:
        base = tmp_path / "bin" / name
        base.parent.mkdir(exist_ok=True)
        Path(str(base) + ".stderr").write_text(stderr, encoding="utf-8")
        Path(str(base) + ".stdout").write_text(stdout, encoding="utf-8")
        base.write_text(
            FAKE_TOOL_TEMPLATE.format(
                python=sys.executable,
                base=str(base),
                sleep=sleep,
                exit_code=exit_code,
                background=background,
                close_pipes=close_pipes,
            ),
            encoding="utf-8",
        )
        base.chmod(0o755)
        return FakeTool(base)

    return make


@pytest.fixture
def probe_json():
    return json.dumps(PROBE_DOCUMENT, indent=2)


@pytest.fixture
def media_file(tmp_path):
    """An existing (dummy) input file."""
    path = tmp_path / "input.mp4"
    path.write_bytes(b"\x00" * 16)
    return path


@pytest.fixture
def settings_for(tmp_path):
    """Build Settings pointing at fake executables."""

    def make(ffmpeg, ffprobe, **overrides) -> Settings:
        return Settings(ffmpeg_path=str(ffmpeg), ffprobe_path=str(ffprobe), **overrides)

    return make


def feed_transcript(
    accumulator: RunAccumulator, transcript: str, channel: Channel = Channel.STDERR
) -> list[ProgressSnapshot]:
    """Run a transcript through classifier and accumulator the way the supervisor does."""
    notifications = []
    for text in transcript.splitlines():
        accumulator.record(LogLine(channel=channel, text=text))
        if channel != Channel.STDERR:
            continue
        for update in classify_line(text, accumulator.state):
            notification = accumulator.fold(update)
            if notification is not None:
                notifications.append(notification)
    return notifications
