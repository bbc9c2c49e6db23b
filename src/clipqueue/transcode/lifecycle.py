"""
Process-wide termination handling.

The LifecycleController routes every way the process can end (Ctrl-C, hangup,
termination and user signals, an uncaught exception, normal interpreter exit)
into RunState.cancel_current(), so the active session always gets the chance
to stop its engine and delete its partial output before the process goes.
"""
import atexit
import signal
import sys
from typing import Dict, Optional

from clipqueue.transcode.sequencer import RunState
from clipqueue.utils import EXIT_CANCELLED, LogLevel, logger

# Not every platform has all of these (Windows lacks SIGHUP and SIGUSR*)
TERMINATION_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP", "SIGUSR1", "SIGUSR2")


class LifecycleController:
    """Installs the signal, excepthook and atexit handlers for one run."""

    def __init__(self, run_state: RunState, exit_code: int = EXIT_CANCELLED):
        self.run_state = run_state
        self.exit_code = exit_code
        self._previous_handlers: Dict[int, object] = {}
        self._previous_excepthook = None
        self._fault_hook = self._on_fault
        self._installed = False
        self.received_signal: Optional[int] = None

    def install(self) -> "LifecycleController":
        if self._installed:
            return self
        for name in TERMINATION_SIGNALS:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            try:
                self._previous_handlers[signum] = signal.signal(signum, self._on_signal)
            except (OSError, ValueError):
                # not the main thread, or the signal cannot be caught here
                continue
        self._previous_excepthook = sys.excepthook
        sys.excepthook = self._fault_hook
        atexit.register(self._on_exit)
        self._installed = True
        return self

    def uninstall(self) -> None:
        if not self._installed:
            return
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()
        if sys.excepthook is self._fault_hook:
            sys.excepthook = self._previous_excepthook
        atexit.unregister(self._on_exit)
        self._installed = False

    def __enter__(self) -> "LifecycleController":
        return self.install()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()

    def _on_signal(self, signum: int, _frame) -> None:
        """
        Cancel the running session, or exit straight away when there is none.

        Nothing here may take a lock: the handler runs on the main thread and
        can interrupt code that already holds one. The signal is logged
        later by log_received_signal().
        """
        self.received_signal = signum
        if self.run_state.cancel_current():
            # the sequencer ends the run once the engine confirms it stopped
            return
        sys.exit(self.exit_code)

    def log_received_signal(self) -> None:
        """Log the signal that ended the run, if one arrived."""
        if self.received_signal is not None:
            logger.log("lifecycle.signal", LogLevel.WARN, signal=_signal_name(self.received_signal))

    def _on_fault(self, exc_type, exc, tb) -> None:
        logger.log("lifecycle.fault", LogLevel.ERROR, error=f"{exc_type.__name__}: {exc}")
        self.run_state.cancel_current(wait=True)
        hook = self._previous_excepthook or sys.__excepthook__
        hook(exc_type, exc, tb)

    def _on_exit(self) -> None:
        if self.run_state.cancel_current(wait=True):
            logger.log("lifecycle.exit", LogLevel.WARN, cleanup=True)
        else:
            logger.log("lifecycle.exit", LogLevel.DEBUG, cleanup=False)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)

