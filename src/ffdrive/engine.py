"""High-level transcoder and prober operations."""

import logging
import threading

from ffdrive.config import Settings, get_settings
from ffdrive.models.events import ConversionComplete, Notification, ProbeComplete, ProgressSnapshot
from ffdrive.models.media import MediaFile, Metadata
from ffdrive.models.options import ConversionOptions
from ffdrive.models.run import InvocationRequest, RunResult, Task, Tool
from ffdrive.notifications import NotificationBus, Subscriber
from ffdrive.process.commands import CommandBuilder, with_global_flags
from ffdrive.process.supervisor import ProcessSupervisor
from ffdrive.validators import resolve_executable, validate_custom_arguments, validate_input_file

logger = logging.getLogger(__name__)


class Engine:
    """Runs ffmpeg/ffprobe tasks and republishes their notifications on ``events``.

    Every operation blocks until the child process exits. A failed run raises
    TranscodeError; progress and completion notifications are published to
    ``events`` while the run is supervised.
    """

    def __init__(
        self,
        ffmpeg_path: str | None = None,
        ffprobe_path: str | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.ffmpeg_path = resolve_executable(ffmpeg_path or self.settings.ffmpeg_path, "ffmpeg")
        self.ffprobe_path = resolve_executable(
            ffprobe_path or self.settings.ffprobe_path, "ffprobe"
        )
        self.builder = CommandBuilder(probe_flags=self.settings.probe_flags)
        self.events = NotificationBus()
        self._active: set[ProcessSupervisor] = set()
        self._lock = threading.Lock()

    def on_progress(self, callback: Subscriber) -> Subscriber:
        return self.events.subscribe(callback, ProgressSnapshot)

    def on_conversion_complete(self, callback: Subscriber) -> Subscriber:
        return self.events.subscribe(callback, ConversionComplete)

    def on_probe_complete(self, callback: Subscriber) -> Subscriber:
        return self.events.subscribe(callback, ProbeComplete)

    def convert(
        self,
        input_file: MediaFile,
        output_file: MediaFile,
        options: ConversionOptions | None = None,
        timeout: float | None = None,
    ) -> RunResult:
        """Convert media, with default options when none are given."""
        return self._run_task(Task.CONVERT, input_file, output_file, options, timeout)

    def get_metadata(self, input_file: MediaFile, timeout: float | None = None) -> RunResult:
        """Read metadata from the transcoder's diagnostic output."""
        return self._run_task(Task.GET_METADATA, input_file, timeout=timeout)

    def probe_metadata(self, input_file: MediaFile, timeout: float | None = None) -> RunResult:
        """Read metadata with the dedicated prober."""
        return self._run_task(Task.PROBE_METADATA, input_file, timeout=timeout)

    def get_thumbnail(
        self,
        input_file: MediaFile,
        output_file: MediaFile,
        options: ConversionOptions | None = None,
        timeout: float | None = None,
    ) -> RunResult:
        """Grab a single frame from a video into an image file."""
        return self._run_task(Task.GET_THUMBNAIL, input_file, output_file, options, timeout)

    def custom_command(self, arguments: str, timeout: float | None = None) -> RunResult:
        """Pass an argument string straight to the transcoder, without global flags."""
        validate_custom_arguments(arguments)
        request = InvocationRequest(
            tool=Tool.TRANSCODER,
            task=Task.CUSTOM,
            executable=self.ffmpeg_path,
            arguments=arguments,
        )
        return self._supervise(request, timeout)

    def cancel(self) -> None:
        """Cancel every run currently supervised by this engine."""
        with self._lock:
            active = list(self._active)
        for supervisor in active:
            supervisor.cancel()

    def _run_task(
        self,
        task: Task,
        input_file: MediaFile,
        output_file: MediaFile | None = None,
        options: ConversionOptions | None = None,
        timeout: float | None = None,
    ) -> RunResult:
        validate_input_file(input_file, self.settings.remote_prefixes)
        arguments = self.builder.serialize(task, input_file, output_file, options)

        if task == Task.PROBE_METADATA:
            tool, executable = Tool.PROBER, self.ffprobe_path
        else:
            tool, executable = Tool.TRANSCODER, self.ffmpeg_path
            arguments = with_global_flags(arguments, self.settings.global_flags)

        request = InvocationRequest(
            tool=tool,
            task=task,
            executable=executable,
            arguments=arguments,
            input_file=input_file,
            output_file=output_file,
        )
        result = self._supervise(request, timeout)
        self._attach_metadata(input_file, result)
        return result

    def _supervise(self, request: InvocationRequest, timeout: float | None) -> RunResult:
        supervisor = ProcessSupervisor(
            request,
            on_notification=lambda n: self.events.publish(self._with_context(request, n)),
            timeout=timeout if timeout is not None else self.settings.timeout_seconds,
            kill_wait=self.settings.kill_wait_seconds,
        )
        with self._lock:
            self._active.add(supervisor)
        try:
            result = supervisor.run()
        finally:
            with self._lock:
                self._active.discard(supervisor)

        updates = {}
        if result.conversion is not None:
            updates["conversion"] = self._with_context(request, result.conversion)
        if result.probe is not None:
            updates["probe"] = self._with_context(request, result.probe)
        return result.model_copy(update=updates) if updates else result

    @staticmethod
    def _with_context(request: InvocationRequest, notification: Notification) -> Notification:
        context = {}
        if request.input_file is not None:
            context["input_file"] = request.input_file.filename
        if isinstance(notification, ConversionComplete) and request.output_file is not None:
            context["output_file"] = request.output_file.filename
        return notification.model_copy(update=context) if context else notification

    @staticmethod
    def _attach_metadata(input_file: MediaFile, result: RunResult) -> None:
        if result.probe is not None:
            current = input_file.metadata or Metadata()
            input_file.metadata = current.model_copy(
                update={"duration": result.probe.total_duration}
            )
        elif result.metadata is not None and (
            result.metadata.duration is not None or result.metadata.video or result.metadata.audio
        ):
            input_file.metadata = result.metadata
