"""Transcoder and prober argument construction."""

import shlex

from ffdrive.models.media import MediaFile
from ffdrive.models.options import ConversionOptions
from ffdrive.models.run import Task


def with_global_flags(arguments: str, flags: list[str]) -> str:
    """Prepend the transcoder's global flags to a serialized argument string."""
    if not flags:
        return arguments
    return f"{shlex.join(flags)} {arguments}".strip()


class CommandBuilder:
    """Maps a task and its options onto one serialized argument string."""

    def __init__(self, probe_flags: list[str] | None = None):
        self.probe_flags = probe_flags or []

    def serialize(
        self,
        task: Task,
        input_file: MediaFile,
        output_file: MediaFile | None = None,
        options: ConversionOptions | None = None,
    ) -> str:
        if task == Task.CONVERT:
            args = self.build_convert_args(
                input_file, self._require_output(task, output_file), options
            )
        elif task == Task.GET_METADATA:
            args = ["-i", input_file.filename, "-f", "ffmetadata", "-"]
        elif task == Task.GET_THUMBNAIL:
            args = self.build_thumbnail_args(
                input_file, self._require_output(task, output_file), options
            )
        elif task == Task.PROBE_METADATA:
            args = [*self.probe_flags, input_file.filename]
        else:
            raise ValueError(f"Task {task} has no argument mapping")
        return shlex.join(args)

    def build_convert_args(
        self,
        input_file: MediaFile,
        output_file: MediaFile,
        options: ConversionOptions | None = None,
    ) -> list[str]:
        opts = options or ConversionOptions()
        args: list[str] = []
        if opts.seek is not None:
            args.extend(["-ss", f"{opts.seek:g}"])
        args.extend(["-i", input_file.filename])
        if opts.max_duration is not None:
            args.extend(["-t", f"{opts.max_duration:g}"])

        if opts.video_codec:
            args.extend(["-c:v", opts.video_codec])
        if opts.video_bitrate:
            args.extend(["-b:v", f"{opts.video_bitrate}k"])
        if opts.crf is not None:
            args.extend(["-crf", str(opts.crf)])
        if opts.preset:
            args.extend(["-preset", opts.preset])
        if opts.video_fps:
            args.extend(["-r", f"{opts.video_fps:g}"])
        if opts.width and opts.height:
            args.extend(["-s", f"{opts.width}x{opts.height}"])
        if opts.aspect_ratio:
            args.extend(["-aspect", opts.aspect_ratio])

        if opts.audio_codec:
            args.extend(["-c:a", opts.audio_codec])
        if opts.audio_bitrate:
            args.extend(["-b:a", f"{opts.audio_bitrate}k"])
        if opts.audio_sample_rate:
            args.extend(["-ar", str(opts.audio_sample_rate)])

        args.extend(opts.extra_args)
        args.append(output_file.filename)
        return args

    def build_thumbnail_args(
        self,
        input_file: MediaFile,
        output_file: MediaFile,
        options: ConversionOptions | None = None,
    ) -> list[str]:
        opts = options or ConversionOptions()
        seek = opts.seek if opts.seek is not None else 1.0
        args = ["-ss", f"{seek:g}", "-i", input_file.filename, "-vframes", "1"]
        if opts.width and opts.height:
            args.extend(["-s", f"{opts.width}x{opts.height}"])
        args.extend(opts.extra_args)
        args.append(output_file.filename)
        return args

    @staticmethod
    def _require_output(task: Task, output_file: MediaFile | None) -> MediaFile:
        if output_file is None:
            raise ValueError(f"Task {task} needs an output file")
        return output_file
