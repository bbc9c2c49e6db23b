"""
Command line entry point: transcode every clip in the input folder that has
no counterpart in the output folder yet.
"""

import argparse
import dataclasses
from pathlib import Path
from typing import List, Optional

import clipqueue as clipqueue_module
from clipqueue.errors import ClipQueueError
from clipqueue.transcode import JobSequencer, LifecycleController, RunState, diff, scan
from clipqueue.utils import (
    EXIT_CANCELLED,
    EXIT_OK,
    EXIT_STARTUP_ERROR,
    SETTINGS_FILE,
    STATUS_DRY_RUN,
    STATUS_PENDING,
    LogLevel,
    Settings,
    load_settings,
    logger,
    system_util,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipqueue",
        description="Transcode every video in the input folder that is missing from the output folder, "
                    "one file at a time, using HandBrakeCLI and a HandBrake preset file.",
        epilog="Example: clipqueue --settings ./settings.json",
    )
    parser.add_argument("--settings", help=f"Path to the settings file (default: {SETTINGS_FILE} or $CLIPQUEUE_SETTINGS)")
    parser.add_argument("--presets-dir", help="Folder holding preset files (overrides presetsPath)")
    parser.add_argument("--handbrake-cli", help="HandBrakeCLI binary to run (overrides handbrakeCliPath)")
    parser.add_argument("--dry-run", action="store_true", help="List the files that would be transcoded and exit")
    parser.add_argument("--no-progress", action="store_true", help="Do not draw progress bars")
    parser.add_argument("--no-wait", action="store_true", help="Exit without waiting for a key press")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {clipqueue_module.__version__}")
    return parser


def _apply_overrides(settings: Settings, args) -> Settings:
    changes = {}
    if args.presets_dir:
        changes["presets_path"] = Path(args.presets_dir).expanduser().resolve()
    if args.handbrake_cli:
        changes["handbrake_cli"] = args.handbrake_cli
    return dataclasses.replace(settings, **changes) if changes else settings


def run(args, run_state: RunState) -> int:
    """Load settings, compute the pending queue and drive it. Returns the exit code."""
    settings = _apply_overrides(load_settings(Path(args.settings or SETTINGS_FILE)), args)
    logger.log("startup.settings", LogLevel.DEBUG,
               input=str(settings.input_path),
               output=str(settings.output_path),
               preset=str(settings.preset_file_path),
               extensions=",".join(settings.accepted_extensions))

    if not args.dry_run:
        engine = system_util.resolve_binary(settings.handbrake_cli)
        settings = dataclasses.replace(settings, handbrake_cli=engine)

    input_catalog = scan(settings.input_path, settings.accepted_extensions)
    # finished files always carry the output extension, even when it is not an accepted input extension
    output_catalog = scan(settings.output_path, (*settings.accepted_extensions, settings.output_extension))
    pending = diff(input_catalog, output_catalog)

    if not pending:
        logger.log("queue.empty", LogLevel.INFO, msg="No videos to process")
        return EXIT_OK

    logger.log("queue.found", LogLevel.INFO,
               msg=f"Found {len(pending)} videos to process",
               inputs=len(input_catalog),
               done=len(output_catalog))

    if args.dry_run:
        for item in pending:
            logger.log("queue.item", LogLevel.INFO, status=STATUS_DRY_RUN, file=item.name)
        return EXIT_OK

    sequencer = JobSequencer(pending, settings, run_state, show_progress=not args.no_progress)
    summary = sequencer.run()

    logger.log("queue.summary", LogLevel.INFO,
               state=summary.state.name,
               ok=len(summary.processed),
               failed=len(summary.failed),
               cancelled=summary.cancelled.name if summary.cancelled else None,
               remaining=summary.remaining,
               elapsed=f"{summary.elapsed:.1f}s")
    for item in pending[len(pending) - summary.remaining:]:
        logger.log("queue.item", LogLevel.DEBUG, status=STATUS_PENDING, file=item.name)
    return summary.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.set_log_level(LogLevel.DEBUG if args.debug else LogLevel.INFO)

    run_state = RunState()
    controller = LifecycleController(run_state).install()
    try:
        try:
            code = run(args, run_state)
        except ClipQueueError as e:
            first, *rest = str(e).splitlines() or [""]
            logger.log("startup.error", LogLevel.ERROR, error_type=type(e).__name__, msg=first)
            if rest:
                logger.safe_print("\n".join(rest))
            code = EXIT_STARTUP_ERROR

        logger.log("exit", LogLevel.DEBUG, code=code)
        # a cancelled run ends immediately, everything else waits for the operator
        if code != EXIT_CANCELLED and not args.no_wait:
            system_util.wait_for_acknowledgement()
        return code
    finally:
        controller.log_received_signal()
        controller.uninstall()


if __name__ == "__main__":
    raise SystemExit(main())
