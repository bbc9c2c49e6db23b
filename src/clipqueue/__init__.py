"""
An incremental batch transcoder driven by HandBrakeCLI.

This package watches an input folder of video clips, works out which of them
have no transcoded counterpart in the output folder yet, and runs the external
engine over each missing clip one at a time. Interrupted work never leaves a
partial output file behind.

The package is organized into two areas:
- utils: constants, structured logging, settings loading and small system helpers.
- transcode: catalog scanning, difference computation, the per-file engine
  session, the job sequencer and the signal/lifecycle controller.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
