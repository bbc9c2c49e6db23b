"""
One HandBrakeCLI run over one work item.

A TranscodeSession validates the preset and builds the engine command when it
is created, then runs the engine as a child process once started. A watcher
thread turns the engine's output into events on a queue:

    Progress(percent)          zero or more times
    Finished()                 the output file is complete
    EngineFailed(message, ..)  the engine exited with an error
    Cancelled()                the engine stopped after cancel()

Exactly one of the last three is delivered, and it is always the last event.
When the session ends in EngineFailed or Cancelled, the partial output file
has already been deleted by the time the event is delivered, so a later scan
of the output folder never mistakes it for finished work.
"""
import queue
import subprocess
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from clipqueue.transcode.catalog import WorkItem
from clipqueue.transcode.preset import load_preset
from clipqueue.utils import logger, LogLevel, Settings
from clipqueue.utils.constants import PROGRESS_REGEX, STDERR_TAIL_LINES
from clipqueue.utils.file_util import build_output_path, remove_partial


@dataclass(frozen=True)
class TranscodeInvocation:
    input_path: Path
    output_path: Path
    preset_file_path: Path
    preset_name: str

    def to_args(self) -> List[str]:
        return [
            "--input", str(self.input_path),
            "--output", str(self.output_path),
            "--preset-import-file", str(self.preset_file_path),
            "--preset", self.preset_name,
        ]


@dataclass(frozen=True)
class Progress:
    percent: float


@dataclass(frozen=True)
class Finished:
    pass


@dataclass(frozen=True)
class EngineFailed:
    message: str
    exit_code: Optional[int] = None


@dataclass(frozen=True)
class Cancelled:
    pass


SessionEvent = Union[Progress, Finished, EngineFailed, Cancelled]
TerminalEvent = Union[Finished, EngineFailed, Cancelled]
TERMINAL_EVENTS = (Finished, EngineFailed, Cancelled)


def build_invocation(item: WorkItem, settings: Settings) -> TranscodeInvocation:
    """Build the engine parameters for `item`. Raises PresetNotFound/PresetInvalid."""
    preset = load_preset(settings.preset_file_path)
    return TranscodeInvocation(
        input_path=item.source_path,
        output_path=build_output_path(settings.output_path, item.identity, settings.output_extension),
        preset_file_path=preset.file_path,
        preset_name=preset.name,
    )


def parse_progress(line: str) -> Optional[float]:
    """Extract the completion percentage from a HandBrakeCLI status line."""
    match = PROGRESS_REGEX.search(line)
    if not match:
        return None
    return min(float(match.group(1)), 100.0)


class TranscodeSession:
    """Runs the external engine over a single work item and reports its events."""

    def __init__(self, item: WorkItem, settings: Settings, engine_cmd: Optional[Sequence[str]] = None):
        self.item = item
        self.invocation = build_invocation(item, settings)
        self._engine_cmd = list(engine_cmd) if engine_cmd else [settings.handbrake_cli]
        self._events: "queue.Queue[SessionEvent]" = queue.Queue()
        self._process: Optional[subprocess.Popen] = None
        self._watcher: Optional[threading.Thread] = None
        self._started = False
        self._cancel_requested = False
        self._done = threading.Event()
        self.result: Optional[TerminalEvent] = None

    @property
    def output_path(self) -> Path:
        return self.invocation.output_path

    @property
    def command(self) -> List[str]:
        return self._engine_cmd + self.invocation.to_args()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def start(self) -> "TranscodeSession":
        """Launch the engine. Returns immediately; progress arrives through events()."""
        if self._started:
            raise RuntimeError(f"Session for {self.item.name} already started")
        self._started = True

        if self._cancel_requested:
            self._finish(Cancelled())
            return self

        logger.log("session.start", LogLevel.INFO,
                   file=self.item.name,
                   dst=self.output_path.name,
                   preset=self.invocation.preset_name)
        logger.log("session.command", LogLevel.DEBUG, cmd=" ".join(self.command))

        try:
            self._process = subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as e:
            self._finish(EngineFailed(f"Could not start engine: {e}"))
            return self

        # cancel() may have run from a signal handler while the process was spawning
        if self._cancel_requested:
            self._terminate()

        self._watcher = threading.Thread(target=self._watch, name=f"session-{self.item.identity}", daemon=True)
        self._watcher.start()
        return self

    def cancel(self) -> None:
        """
        Ask the engine to stop.

        Safe to call from signal handlers, excepthooks and atexit callbacks:
        it never raises and does nothing once the session has ended. Cleanup
        of the partial output happens when the engine confirms it stopped.
        """
        if self._done.is_set():
            return
        self._cancel_requested = True
        self._terminate()

    def events(self) -> Iterator[SessionEvent]:
        """Yield events as they arrive, ending with the terminal event."""
        while True:
            event = self._events.get()
            yield event
            if isinstance(event, TERMINAL_EVENTS):
                return

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until the session reached a terminal event and cleaned up."""
        return self._done.wait(timeout)

    def _terminate(self) -> None:
        process = self._process
        if process is None:
            return
        try:
            if process.poll() is None:
                process.terminate()
        except OSError:
            # already reaped
            pass

    def _watch(self) -> None:
        process = self._process
        stderr_tail: deque = deque(maxlen=STDERR_TAIL_LINES)

        def _drain_stderr():
            for line in process.stderr:
                stripped = line.rstrip()
                if stripped:
                    stderr_tail.append(stripped)

        stderr_thread = threading.Thread(target=_drain_stderr, name=f"stderr-{self.item.identity}", daemon=True)
        stderr_thread.start()

        read_error = None
        try:
            for line in process.stdout:
                percent = parse_progress(line)
                if percent is not None:
                    self._events.put(Progress(percent))
        except (OSError, ValueError) as e:
            read_error = str(e)
            self._terminate()

        code = process.wait()
        stderr_thread.join()

        if self._cancel_requested:
            self._cleanup_partial()
            self._finish(Cancelled())
        elif code == 0 and read_error is None:
            self._finish(Finished())
        else:
            self._cleanup_partial()
            detail = read_error or (stderr_tail[-1] if stderr_tail else "no output")
            self._finish(EngineFailed(f"Engine exited with code {code}: {detail}", exit_code=code))

    def _cleanup_partial(self) -> None:
        try:
            removed = remove_partial(self.output_path)
        except OSError as e:
            logger.log("session.cleanup_failed", LogLevel.ERROR,
                       file=self.output_path.name,
                       error=str(e))
            return
        if removed:
            logger.log("session.cleanup", LogLevel.INFO, removed=str(self.output_path))

    def _finish(self, event: TerminalEvent) -> None:
        self.result = event
        self._events.put(event)
        self._done.set()
