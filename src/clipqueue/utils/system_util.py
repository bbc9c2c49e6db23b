"""
Utility functions for locating binaries and talking to the operator.

Functions:
    - resolve_binary: Locate an executable either by explicit path or on PATH.
    - wait_for_acknowledgement: Block until the operator presses Enter, so a
      double-clicked launch does not close before the final message is read.
"""
import shutil
import sys
from pathlib import Path

from clipqueue.errors import EngineNotFound


def resolve_binary(binary: str) -> str:
    """Return the full path to `binary`, raising EngineNotFound if it cannot be run."""
    found = shutil.which(binary)
    if found is None:
        candidate = Path(binary).expanduser()
        if candidate.is_file():
            return str(candidate.resolve())
        raise EngineNotFound(
            f"'{binary}' not found. Install HandBrakeCLI or set handbrakeCliPath in the settings file."
        )
    return found


def wait_for_acknowledgement(prompt: str = "Press Enter to exit") -> None:
    """Wait for the operator to press Enter. Returns immediately without an interactive stdin."""
    stdin = sys.stdin
    if stdin is None or stdin.closed or not stdin.isatty():
        return
    try:
        input(prompt)
    except (EOFError, KeyboardInterrupt):
        pass
