"""
Constants, logging, settings and system helpers for the transcoding queue.

This package gathers the pieces the core relies on but that carry no queue
logic of their own: default values and exit codes, the structured logger,
settings-file loading, filename helpers and operator interaction.
"""

from .constants import (
    DEFAULT_ACCEPTED_EXTENSIONS,
    DEFAULT_OUTPUT_EXTENSION,
    DEFAULT_PRESET_FILE,
    EXIT_CANCELLED,
    EXIT_ITEM_FAILED,
    EXIT_OK,
    EXIT_STARTUP_ERROR,
    HANDBRAKE_CLI,
    PRESETS_DIR,
    SETTINGS_FILE,
    STATUS_CANCELLED,
    STATUS_DRY_RUN,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_PENDING,
)
from .logger import LogLevel
from .settings import Settings, load_settings

__all__ = [
    "DEFAULT_ACCEPTED_EXTENSIONS",
    "DEFAULT_OUTPUT_EXTENSION",
    "DEFAULT_PRESET_FILE",
    "EXIT_CANCELLED",
    "EXIT_ITEM_FAILED",
    "EXIT_OK",
    "EXIT_STARTUP_ERROR",
    "HANDBRAKE_CLI",
    "PRESETS_DIR",
    "SETTINGS_FILE",
    "STATUS_CANCELLED",
    "STATUS_DRY_RUN",
    "STATUS_FAIL",
    "STATUS_OK",
    "STATUS_PENDING",
    "LogLevel",
    "Settings",
    "load_settings",
]
