"""
Constants and default settings for the transcoding queue.

This module contains the defaults used when the settings file leaves a field
out, the locations the program looks in for its settings and presets, and the
exit codes and status labels reported by the command line tool. Values that
depend on the machine (engine binary, settings location) can be overridden
through environment variables or a local .env file.
"""

import os
import re

from dotenv import load_dotenv

load_dotenv()

# File locations
SETTINGS_FILE = os.getenv("CLIPQUEUE_SETTINGS", "settings.json")
PRESETS_DIR = os.getenv("CLIPQUEUE_PRESETS_DIR", "presets")

# External engine
HANDBRAKE_CLI = os.getenv("HANDBRAKE_CLI", "HandBrakeCLI")

# Settings defaults
DEFAULT_PRESET_FILE = "custom.json"
DEFAULT_ACCEPTED_EXTENSIONS = ("mp4", "mkv")
DEFAULT_OUTPUT_EXTENSION = "mp4"

# HandBrakeCLI progress, e.g. "Encoding: task 1 of 1, 45.67 % (88.12 fps, avg 90.01 fps, ETA 00h00m12s)"
PROGRESS_REGEX = re.compile(r"Encoding: task \d+ of \d+, (\d+(?:\.\d+)?) %")

# Number of engine stderr lines kept for error reports
STDERR_TAIL_LINES = 20

# Process exit codes
EXIT_OK = 0
EXIT_ITEM_FAILED = 1
EXIT_STARTUP_ERROR = 2
EXIT_CANCELLED = 130

# Processing status codes
STATUS_OK = "OK"
STATUS_FAIL = "FAIL"
STATUS_CANCELLED = "CANCELLED"
STATUS_DRY_RUN = "DRY-RUN"
STATUS_PENDING = "PENDING"

# Template printed when no settings file is found
SETTINGS_TEMPLATE = """{
    "inputPath": "",
    "outputPath": "",
    "presetName": "custom.json",
    "acceptedExtensions": ["mp4", "mkv"],
    "outputExtension": "mp4"
}"""
