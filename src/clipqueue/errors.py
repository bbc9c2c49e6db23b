"""Exception hierarchy for the transcoding queue.

Startup problems (settings, folders, engine binary, presets) are raised as
exceptions and stop the run. Failures reported by the engine while an item is
being transcoded are delivered as session events instead.
"""


class ClipQueueError(Exception):
    """Base class for all errors raised by clipqueue."""


class ConfigurationInvalid(ClipQueueError):
    """The settings file is missing, malformed, or lacks a required field."""


class DirectoryUnreadable(ClipQueueError):
    """A catalog directory does not exist or cannot be listed."""

    def __init__(self, path, reason: str = "does not exist"):
        self.path = path
        self.reason = reason
        super().__init__(f"Directory {path} {reason}")


class PresetNotFound(ClipQueueError):
    """The preset file is unreadable, not valid JSON, or has no presets."""


class PresetInvalid(PresetNotFound):
    """The preset file parsed, but its first entry has no usable PresetName."""


class EngineNotFound(ClipQueueError):
    """The transcoding engine binary could not be located."""
