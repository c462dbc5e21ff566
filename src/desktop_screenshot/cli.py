"""Command-line interface for desktop-screenshot.

Entry point flow:
1. Parse arguments
2. Handle introspection flags (print and exit)
3. Load config, take the screenshot, report the result
"""

import argparse
import atexit
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from . import __version__
from .capture import detect_desktop, screenshot
from .config import (
    config_defaults,
    config_schema,
    config_to_dict,
    load_config,
    validate_config_file,
)
from .emit import EVENT_CATALOG, configure, emit
from .errors import CaptureError
from .strategies import ScreenshotKind

log = logging.getLogger(__name__)

# argparse already exits 2 on usage errors.
EXIT_TOOL_FAILED = 3


def create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI usage."""
    parser = argparse.ArgumentParser(
        prog="desktop-screenshot",
        description="Take a screenshot with the native tool of the running desktop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s full ~/shot.png             # Whole screen
  %(prog)s window ~/shot.png           # Active window
  %(prog)s area ~/shot.png --freeze    # Select a region over a frozen screen
  %(prog)s --detect                    # Show which tool would be used
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"desktop-screenshot {__version__}",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )

    parser.add_argument(
        "mode",
        nargs="?",
        choices=[kind.value for kind in ScreenshotKind],
        help="Screenshot mode",
    )
    parser.add_argument(
        "destination",
        nargs="?",
        help="Output file",
    )
    parser.add_argument(
        "--freeze",
        action="store_true",
        help="Area mode: close the frozen backdrop after selecting",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the capture result as JSON",
    )

    # Introspection
    parser.add_argument(
        "--detect",
        action="store_true",
        help="Print detected session and desktop as JSON and exit",
    )
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-config-schema",
        action="store_true",
        help="Print configuration schema as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-event-catalog",
        action="store_true",
        help="Print event catalog as JSON and exit",
    )

    parser.add_argument(
        "--no-events",
        action="store_true",
        help="Do not write JSON events to stderr",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _emit_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _handle_introspection(args: argparse.Namespace) -> Optional[int]:
    config_path = Path(args.config).expanduser() if args.config else None

    if args.print_defaults:
        _emit_json(config_defaults())
        return 0

    if args.print_config_schema:
        _emit_json(config_schema())
        return 0

    if args.validate_config:
        try:
            errors = validate_config_file(config_path)
        except ValueError as e:
            errors = [str(e)]
        if errors:
            for error in errors:
                print(error, file=sys.stderr)
            return 1
        return 0

    if args.print_resolved:
        _emit_json(config_to_dict(load_config(config_path=config_path)))
        return 0

    if args.print_event_catalog:
        _emit_json({"catalog": EVENT_CATALOG})
        return 0

    return None


def handle_detect(config) -> int:
    try:
        session, desktop = detect_desktop(config=config)
    except CaptureError as e:
        emit("error.handled", {"error_type": type(e).__name__, "message": str(e), "mode": None})
        log.error("%s", e)
        return 1
    _emit_json({"session": session.value, "desktop": desktop.value})
    return 0


def handle_capture(args: argparse.Namespace, config) -> int:
    """Take the requested screenshot and report it."""
    mode = ScreenshotKind(args.mode)
    operation_id = str(uuid.uuid4())
    emit("operation.started", {
        "operation_id": operation_id,
        "mode": mode.value,
        "destination": args.destination,
    })

    try:
        result = screenshot(mode, args.destination, freeze=args.freeze, config=config)
    except CaptureError as e:
        emit("error.handled", {"error_type": type(e).__name__, "message": str(e), "mode": mode.value})
        emit("operation.completed", {
            "operation_id": operation_id,
            "mode": mode.value,
            "destination": args.destination,
            "success": False,
            "error_message": str(e),
        })
        log.error("Capture failed: %s", e)
        return 1

    emit("operation.completed", {
        "operation_id": operation_id,
        "mode": mode.value,
        "destination": args.destination,
        "success": result.ok,
        "desktop": result.desktop.value,
    })

    if args.json:
        print(json.dumps(result.to_dict()), flush=True)
    else:
        log.info("Screenshot saved: %s", result.destination)
    return 0 if result.ok else EXIT_TOOL_FAILED


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 on success, 1 on error, 2 on bad usage,
        3 if a tool reported failure
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    result = _handle_introspection(parsed_args)
    if result is not None:
        return result

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    configure("desktop-screenshot", stderr=not parsed_args.no_events)
    atexit.register(lambda: emit("shutdown", {}))

    config_path = Path(parsed_args.config).expanduser() if parsed_args.config else None
    config = load_config(config_path=config_path)
    emit("config.resolved", {
        "config_path": str(config_path or "default"),
        "source": "cli" if config_path else "default",
    })

    if parsed_args.detect:
        return handle_detect(config)

    if not parsed_args.mode or not parsed_args.destination:
        parser.error("mode and destination are required")

    return handle_capture(parsed_args, config)


if __name__ == "__main__":
    sys.exit(main())
