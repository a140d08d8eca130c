"""Process supervisor: spawns the external tool and interprets its output."""

import logging
import os
import queue
import signal
import subprocess
import threading
import time
from collections.abc import Callable
from typing import IO

from ffdrive.models.errors import (
    ProcessLaunchError,
    RunStateError,
    TranscodeError,
    ValidationError,
)
from ffdrive.models.events import Notification
from ffdrive.models.run import (
    Channel,
    FailureRecord,
    InvocationRequest,
    LogLine,
    RunOutcome,
    RunResult,
    Tool,
)
from ffdrive.parsing.accumulator import RunAccumulator
from ffdrive.parsing.classifier import classify_line

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1


def kill_process_group(process: subprocess.Popen) -> None:
    """Kill the child and everything it spawned into its session."""
    if os.name == "posix":
        os.killpg(process.pid, signal.SIGKILL)
    else:
        process.kill()


class ProcessSupervisor:
    """Runs one invocation from spawn to final outcome.

    Both output channels are drained by their own reader thread into a
    single queue. The calling thread is the only consumer: it records every
    line, classifies diagnostic lines and folds the updates into the run
    state, so the state has exactly one writer.

    A fault while classifying or publishing kills the child. The run then
    ends as a failure and no further notifications are delivered.

    The child runs in its own session, and a kill reaches the whole group.
    A descendant that escapes the group and keeps a pipe open does not hold
    up the call: draining is abandoned ``kill_wait`` seconds after the kill
    and the stream is left to its reader thread.
    """

    def __init__(
        self,
        request: InvocationRequest,
        on_notification: Callable[[Notification], None] | None = None,
        timeout: float | None = None,
        kill_wait: float = 5.0,
    ):
        self.request = request
        self.on_notification = on_notification
        self.timeout = timeout
        self.kill_wait = kill_wait
        self.accumulator = RunAccumulator()
        self._lines: queue.Queue = queue.Queue()
        self._lock = threading.Lock()
        self._process: subprocess.Popen | None = None
        self._started = False
        self._deadline: float | None = None
        self._kill_attempted = False
        self._timed_out = False
        self._abandoned = False
        self._cancelled = threading.Event()

    @property
    def kill_attempted(self) -> bool:
        return self._kill_attempted

    def cancel(self) -> None:
        """Stop the run from any thread. The run ends as a cancelled failure."""
        self._cancelled.set()
        self._terminate()

    def run(self) -> RunResult:
        """Spawn the child, interpret its output and wait for it to exit.

        Raises:
            ProcessLaunchError: the child could not be started.
            TranscodeError: the run failed; carries the failure record.
        """
        if self._started:
            raise RunStateError("A supervisor runs exactly one invocation")
        self._started = True

        try:
            argv = self.request.argv
        except ValueError as e:
            raise ValidationError(
                f"Malformed argument string: {e}",
                details={"arguments": self.request.arguments},
            ) from e

        logger.info("Starting %s with arguments %s", self.request.tool, self.request.arguments)
        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                start_new_session=True,
            )
        except OSError as e:
            raise ProcessLaunchError(
                f"Could not start {self.request.executable}: {e}",
                details={"executable": self.request.executable},
            ) from e

        if self.timeout is not None:
            self._deadline = time.monotonic() + self.timeout
        with self._lock:
            self._process = process
        if self._cancelled.is_set():
            self._terminate()

        readers: list[tuple[threading.Thread, IO[str]]] = []
        try:
            channels = ((process.stdout, Channel.STDOUT), (process.stderr, Channel.STDERR))
            for stream, channel in channels:
                readers.append((self._start_reader(stream, channel), stream))
            fault = self._consume(len(readers))
            exit_code = self._wait(process)
        finally:
            if process.poll() is None:
                self._terminate()
                process.wait()
            self._release(readers)

        return self._finalize(exit_code, fault)

    def _start_reader(self, stream: IO[str], channel: Channel) -> threading.Thread:
        reader = threading.Thread(
            target=self._drain,
            args=(stream, channel),
            name=f"ffdrive-{channel}",
            daemon=True,
        )
        reader.start()
        return reader

    def _drain(self, stream: IO[str], channel: Channel) -> None:
        try:
            for line in stream:
                self._lines.put((channel, line.rstrip("\r\n")))
        except (OSError, ValueError) as e:
            logger.debug("Stopped reading %s: %s", channel, e)
        finally:
            self._lines.put((channel, None))

    def _consume(self, open_channels: int) -> Exception | None:
        """Process lines until both channels reach EOF. Returns the captured fault."""
        fault: Exception | None = None
        abandon_at: float | None = None

        while open_channels:
            now = time.monotonic()
            self._check_deadline(now)
            if self._kill_attempted and abandon_at is None:
                abandon_at = now + self.kill_wait
            if abandon_at is not None and now >= abandon_at:
                logger.warning("Output channels still open after kill, abandoning drain")
                self._abandoned = True
                break

            try:
                channel, text = self._lines.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if text is None:
                open_channels -= 1
                continue

            try:
                self.accumulator.record(LogLine(channel=channel, text=text))
                if channel == Channel.STDERR and fault is None and not self._kill_attempted:
                    self._interpret(text)
            except Exception as e:
                if fault is None:
                    fault = e
                    logger.error("Faulted while reading %s output: %s", self.request.tool, e)
                self._terminate()
        return fault

    def _check_deadline(self, now: float) -> None:
        if self._deadline is not None and now >= self._deadline and not self._timed_out:
            self._timed_out = True
            logger.error("%s timed out after %ss", self.request.tool, self.timeout)
            self._terminate()

    def _wait(self, process: subprocess.Popen) -> int:
        """Wait for exit, still honouring the deadline once the pipes are closed."""
        if self._deadline is not None and not self._timed_out:
            try:
                return process.wait(timeout=max(0.0, self._deadline - time.monotonic()))
            except subprocess.TimeoutExpired:
                self._check_deadline(time.monotonic())
        return process.wait()

    def _release(self, readers: list[tuple[threading.Thread, IO[str]]]) -> None:
        for reader, stream in readers:
            reader.join(timeout=0 if self._abandoned else self.kill_wait)
            if reader.is_alive():
                # Closing would block on the reader's buffer lock
                logger.warning("%s is still blocked on a pipe held by a descendant", reader.name)
            else:
                stream.close()

    def _interpret(self, text: str) -> None:
        for update in classify_line(text, self.accumulator.state):
            notification = self.accumulator.fold(update)
            if notification is not None:
                self._notify(notification)

    def _notify(self, notification: Notification) -> None:
        if self.on_notification is not None:
            self.on_notification(notification)

    def _terminate(self) -> None:
        with self._lock:
            if self._kill_attempted or self._process is None:
                return
            self._kill_attempted = True
            process = self._process
        try:
            kill_process_group(process)
        except OSError as e:
            # The process may have exited on its own already
            logger.warning("Could not kill %s: %s", self.request.executable, e)

    def _fail(self, exit_code: int, fault: Exception | None) -> None:
        accumulator = self.accumulator
        accumulator.fail()
        failure = FailureRecord(
            transcript=accumulator.transcript(),
            lines=list(accumulator.state.lines),
            exit_code=exit_code,
            terminated=self._kill_attempted,
            timed_out=self._timed_out,
            cancelled=self._cancelled.is_set(),
            fault=repr(fault) if fault is not None else None,
            error_markers=list(accumulator.state.error_markers),
        )
        logger.error(
            "%s failed with exit code %s (%d lines captured)",
            self.request.tool,
            exit_code,
            len(failure.lines),
        )
        raise TranscodeError(failure) from fault

    def _finalize(self, exit_code: int, fault: Exception | None) -> RunResult:
        accumulator = self.accumulator
        if exit_code != 0 or fault is not None or self._timed_out or self._cancelled.is_set():
            self._fail(exit_code, fault)

        conversion = probe = None
        if self.request.tool == Tool.PROBER:
            try:
                probe = accumulator.complete_probe()
            except ValueError as e:
                logger.warning("Could not retrieve metadata due to error! %s", e)
        else:
            conversion = accumulator.complete_conversion()
            if conversion is None:
                logger.debug("No completion summary in %s output", self.request.tool)

        try:
            if conversion is not None:
                self._notify(conversion)
            if probe is not None:
                self._notify(probe)
        except Exception as e:
            logger.error("Completion subscriber failed: %s", e)
            self._fail(exit_code, e)
        accumulator.succeed()

        return RunResult(
            outcome=RunOutcome.SUCCEEDED,
            exit_code=exit_code,
            transcript=accumulator.transcript(),
            conversion=conversion,
            probe=probe,
            metadata=accumulator.metadata(),
        )
