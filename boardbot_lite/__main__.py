"""Command-line entry for boardbot_lite.

Offers offline tools for the display constraints (render, preview,
validate), a listing of configured sources and a single demo cycle wired to
in-memory collaborators.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from typing import NoReturn, Optional

from . import _init_logging, run_once
from .config_loader import load_config
from .display.charset import Layout, code_to_char
from .display.frame import layout_from_text, render_frame
from .display.preview import CONTENT_MODE, FULL_MODE, render_preview
from .display.validators import validate_text_content
from .domain.exceptions import BoardBotError
from .lite_logging import configure_lite_logging, get_logging_status

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the boardbot CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="boardbot",
        description="BoardBot Lite - content pipeline for a 6x22 split-flap board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  boardbot render "HELLO WORLD"             # Framed grid with info row
  boardbot render --plain "HELLO WORLD"     # Unframed 6x22 grid
  boardbot preview "LINE ONE\\nLINE TWO"     # Content-area preview
  boardbot validate "HELLO"                 # Exit 1 if the text does not fit
  boardbot --config boardbot.yaml run-once  # One cycle with demo wiring
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="YAML or JSON config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Root log level (default: INFO, or from BOARDBOT_LOG_LEVEL env var)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    render = commands.add_parser("render", help="Print the grid for a piece of text")
    render.add_argument("text")
    render.add_argument("--plain", action="store_true", help="Skip the frame")
    render.add_argument("--codes", action="store_true", help="Print numeric codes")

    preview = commands.add_parser("preview", help="Show how text lands in the content area")
    preview.add_argument("text")
    preview.add_argument(
        "--full", action="store_true", help="Preview against the full 6x22 board"
    )

    validate = commands.add_parser(
        "validate", help="Check text against the display constraints"
    )
    validate.add_argument("text")

    commands.add_parser("sources", help="List configured content sources")

    run = commands.add_parser("run-once", help="Run one major cycle with demo collaborators")
    run.add_argument("--event-type", metavar="TYPE", help="Trigger event type")

    return parser


def _unescape(text: str) -> str:
    return text.replace("\\n", "\n")


def _print_layout(layout: Layout, codes: bool = False) -> None:
    for row in layout:
        if codes:
            print(" ".join(f"{code:2d}" for code in row))
        else:
            print("".join(code_to_char(code) for code in row))


def _cmd_render(args: argparse.Namespace) -> int:
    text = _unescape(args.text)
    if args.plain:
        layout = layout_from_text(text)
    else:
        result = render_frame(text, timestamp=datetime.now())
        for warning in result.warnings:
            logger.warning(warning)
        layout = result.layout
    _print_layout(layout, codes=args.codes)
    return 0


def _cmd_preview(args: argparse.Namespace) -> int:
    print(render_preview(_unescape(args.text), FULL_MODE if args.full else CONTENT_MODE))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    result = validate_text_content(_unescape(args.text))
    if result.valid:
        print(f"OK: {result.line_count} line(s), longest {result.max_line_length} chars")
        return 0
    for error in result.errors:
        print(f"ERROR: {error}")
    return 1


def _cmd_sources(args: argparse.Namespace) -> int:
    from .core.dependencies import DEFAULT_SOURCES, build_registry

    config = load_config(args.config)
    registry = build_registry(config.sources or DEFAULT_SOURCES)
    for entry in registry:
        reg = entry.registration
        trigger = f" trigger={reg.event_trigger_pattern}" if reg.event_trigger_pattern else ""
        print(
            f"{reg.id:<20} {reg.priority.name.lower():<13} {reg.kind.value:<13} "
            f"tier={reg.model_tier.value}{trigger}"
        )
    return 0


def _cmd_run_once(args: argparse.Namespace) -> int:
    event_data = {"event_type": args.event_type} if args.event_type else None
    outcome = run_once(args.config, event_data=event_data)
    summary = outcome.status.value
    if outcome.reason:
        summary += f" ({outcome.reason})"
    if outcome.source_id:
        summary += f" source={outcome.source_id}"
    if outcome.used_fallback:
        summary += " fallback=yes"
    print(summary)
    return 0


COMMANDS = {
    "render": _cmd_render,
    "preview": _cmd_preview,
    "validate": _cmd_validate,
    "sources": _cmd_sources,
    "run-once": _cmd_run_once,
}


def main(argv: Optional[list[str]] = None) -> NoReturn:
    """Run the boardbot CLI."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    _init_logging(args.log_level or os.environ.get("BOARDBOT_LOG_LEVEL"))
    configure_lite_logging(debug_mode=args.debug, log_level=args.log_level)
    logger.debug("Logger levels: %s", get_logging_status())

    try:
        code = COMMANDS[args.command](args)
    except BoardBotError as exc:
        logger.error("%s failed: %s", args.command, exc)
        code = 1
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        code = 2
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
