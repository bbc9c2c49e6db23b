"""Incremental transcoding of a watch folder.

This package provides the queue engine in layers:
- catalog: folder scanning into WorkItems and the input/output difference
- preset: HandBrake preset-file loading
- session: one engine run over one item, reported as events
- sequencer: one-at-a-time execution of the pending queue
- lifecycle: signal and exit handling that cancels the running session
"""

from .catalog import (
    WorkItem,
    scan,
    diff,
)
from .preset import Preset, load_preset
from .session import (
    Cancelled,
    EngineFailed,
    Finished,
    Progress,
    TranscodeInvocation,
    TranscodeSession,
    build_invocation,
)
from .sequencer import (
    JobSequencer,
    RunState,
    RunSummary,
    SequencerState,
)
from .lifecycle import LifecycleController

__all__ = [
    # Catalog
    "WorkItem",
    "scan",
    "diff",
    # Presets
    "Preset",
    "load_preset",
    # Sessions
    "TranscodeInvocation",
    "TranscodeSession",
    "build_invocation",
    "Progress",
    "Finished",
    "EngineFailed",
    "Cancelled",
    # Sequencing
    "JobSequencer",
    "RunState",
    "RunSummary",
    "SequencerState",
    "LifecycleController",
]
