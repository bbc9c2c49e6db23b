"""
Sequential execution of the pending queue.

The JobSequencer walks the queue left to right and never starts the next item
before the current session reached a terminal event. RunState is the only
state shared with the signal handlers: it names the item being worked on and
its session, and offers the single "cancel current" operation they need.

State machine per run::

    IDLE -> DISPATCHING -> IN_PROGRESS -> DISPATCHING ... -> DRAINED
                                       \\-> TERMINATED (on Cancelled)
"""
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from clipqueue.transcode.catalog import WorkItem
from clipqueue.transcode.session import (
    Cancelled,
    EngineFailed,
    Finished,
    Progress,
    TerminalEvent,
    TranscodeSession,
)
from clipqueue.utils import (
    EXIT_CANCELLED,
    EXIT_ITEM_FAILED,
    EXIT_OK,
    STATUS_CANCELLED,
    STATUS_FAIL,
    STATUS_OK,
    LogLevel,
    Settings,
    logger,
)


class SequencerState(Enum):
    IDLE = auto()         # queue not started
    DISPATCHING = auto()  # next item selected
    IN_PROGRESS = auto()  # engine running for the current item
    DRAINED = auto()      # every item reached a terminal event
    TERMINATED = auto()   # run aborted by cancellation


@dataclass
class RunState:
    """The in-flight item and its session, as seen by the lifecycle controller."""
    current_item: Optional[WorkItem] = None
    active_session: Optional[TranscodeSession] = None
    cancel_requested: bool = False

    def cancel_current(self, wait: bool = False) -> bool:
        """
        Cancel the active session, if any. Never raises.

        With `wait` set, block until the session has stopped and removed its
        partial output. Returns True when there was a session to cancel.
        """
        self.cancel_requested = True
        item, session = self.current_item, self.active_session
        if item is None or session is None:
            return False
        session.cancel()
        if wait:
            session.join()
        return True


@dataclass
class RunSummary:
    state: SequencerState = SequencerState.IDLE
    processed: List[WorkItem] = field(default_factory=list)
    failed: List[WorkItem] = field(default_factory=list)
    cancelled: Optional[WorkItem] = None
    remaining: int = 0
    elapsed: float = 0.0

    @property
    def exit_code(self) -> int:
        if self.state == SequencerState.TERMINATED:
            return EXIT_CANCELLED
        if self.failed:
            return EXIT_ITEM_FAILED
        return EXIT_OK


SessionFactory = Callable[[WorkItem, Settings], TranscodeSession]


class JobSequencer:
    """Drives the pending queue through one TranscodeSession at a time."""

    def __init__(self, pending: Sequence[WorkItem], settings: Settings, run_state: Optional[RunState] = None,
                 session_factory: SessionFactory = TranscodeSession, show_progress: bool = True):
        self.pending = list(pending)
        self.settings = settings
        self.run_state = run_state if run_state is not None else RunState()
        self.state = SequencerState.IDLE
        self._session_factory = session_factory
        self._show_progress = show_progress

    def run(self) -> RunSummary:
        """
        Process every pending item in order.

        PresetNotFound and PresetInvalid raised while preparing a session are
        not caught here and abort the whole run. A Cancelled event stops the
        run without touching the remaining items; an EngineFailed event is
        recorded and the queue moves on.
        """
        summary = RunSummary()
        started_at = time.monotonic()
        total = len(self.pending)

        for index, item in enumerate(self.pending, 1):
            if self.run_state.cancel_requested:
                self._set_state(SequencerState.TERMINATED)
                summary.remaining = total - index + 1
                break

            self._set_state(SequencerState.DISPATCHING)
            self.run_state.current_item = item
            try:
                session = self._session_factory(item, self.settings)
                self.run_state.active_session = session
                self._set_state(SequencerState.IN_PROGRESS)
                session.start()
                outcome = self._drive(session, index, total)
            except BaseException:
                # stop the engine and remove its partial output before unwinding
                self.run_state.cancel_current(wait=True)
                raise
            finally:
                self.run_state.active_session = None
                self.run_state.current_item = None

            if isinstance(outcome, Cancelled):
                logger.log("queue.item", LogLevel.WARN, status=STATUS_CANCELLED, file=item.name)
                summary.cancelled = item
                summary.remaining = total - index
                self._set_state(SequencerState.TERMINATED)
                break
            if isinstance(outcome, EngineFailed):
                logger.log("queue.item", LogLevel.ERROR,
                           status=STATUS_FAIL,
                           file=item.name,
                           exit_code=outcome.exit_code,
                           error=outcome.message)
                summary.failed.append(item)
            else:
                logger.log("queue.item", LogLevel.INFO,
                           status=STATUS_OK,
                           file=item.name,
                           dst=session.output_path.name,
                           done=f"{index}/{total}")
                summary.processed.append(item)
        else:
            self._set_state(SequencerState.DRAINED)

        summary.state = self.state
        summary.elapsed = time.monotonic() - started_at
        return summary

    def _drive(self, session: TranscodeSession, index: int, total: int) -> TerminalEvent:
        """Consume session events until the terminal one, rendering progress."""
        bar = tqdm(total=100, desc=f"[{index}/{total}] {session.item.name}", unit="%",
                   bar_format="{desc}: {percentage:5.1f}%|{bar}| {elapsed}<{remaining}",
                   leave=False, disable=not self._show_progress)
        try:
            for event in session.events():
                if isinstance(event, Progress):
                    if event.percent >= 100:
                        bar.close()
                    elif event.percent > bar.n:
                        bar.update(event.percent - bar.n)
                    continue
                if isinstance(event, (Finished, EngineFailed, Cancelled)):
                    return event
        finally:
            bar.close()
        raise RuntimeError(f"Session for {session.item.name} ended without a terminal event")

    def _set_state(self, state: SequencerState) -> None:
        logger.log("queue.state", LogLevel.TRACE, frm=self.state.name, to=state.name)
        self.state = state
