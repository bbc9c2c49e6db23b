"""
Provides structured logging with thread-safety and log levels.

Records are single lines of the form ``timestamp | [LEVEL] | event | key=value``
with UTC timestamps. Lines are written through ``tqdm.write`` so they never
tear an active progress bar, and WARN/ERROR records are highlighted when the
console is a terminal so failures stand out from progress chatter.
"""
import sys
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from tqdm import tqdm

# Re-entrant: excepthook and atexit callbacks may log while the main thread is mid-record
_print_lock = threading.RLock()
_separator = " | "

_COLORS = {
    "ERROR": "\x1b[31m",
    "WARN": "\x1b[33m",
}
_RESET = "\x1b[0m"


class LogLevel(Enum):
    """Log level enumeration."""
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4


_current_level = LogLevel.INFO


def set_log_level(level: LogLevel) -> None:
    """Set the minimum level that is written."""
    global _current_level
    _current_level = level


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        # keep every record on one line
        escaped = value.replace("\r", "\\r").replace("\n", "\\n").replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)


def _render(event: str, level: LogLevel, fields: Dict[str, Any]) -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    parts = [timestamp, f"[{level.name}]", event]
    parts.extend(f"{key}={_format_value(value)}" for key, value in fields.items())
    line = _separator.join(parts)

    stream = sys.stderr
    color = _COLORS.get(level.name)
    if color and stream is not None and stream.isatty():
        line = f"{color}{line}{_RESET}"
    return line


def log(event: str, level: LogLevel = LogLevel.INFO, **fields) -> None:
    """
    Write one structured record.

    Args:
        event: Dotted event name (e.g. 'queue.item', 'session.start')
        level: Record level; records below the current level are dropped
        **fields: Key-value pairs appended to the record
    """
    if level.value < _current_level.value:
        return

    fields.setdefault("thread", thread_name())
    with _print_lock:
        line = _render(event, level, fields)
        try:
            tqdm.write(line, file=sys.stderr)
        except (OSError, ValueError, AttributeError):
            # stderr already closed or gone during interpreter teardown
            pass


def safe_print(*args, **kwargs) -> None:
    """Thread-safe print for plain operator-facing text such as templates."""
    with _print_lock:
        print(*args, **kwargs, flush=True)


def thread_name() -> str:
    """Short label for the current thread: "main", or the watcher's own thread name."""
    thread = threading.current_thread()
    if thread is threading.main_thread():
        return "main"
    return thread.name
