"""
metainspect CLI - thin entrypoint for inspection commands.

Design Principles:
==================
- CLI is a dispatcher only; the engine owns the workflow
- Surface errors verbatim from the engine
- Exit non-zero on failure or cancellation
"""

import argparse
import logging
from typing import List, NoReturn, Optional

from .commands import cmd_inspect, cmd_preferences, cmd_serve, render_report, report_to_json
from .errors import CLIError, ValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metainspect",
        description="Inspect a file and print its technical metadata",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log workflow progress to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    # Inspect command
    parser_inspect = subparsers.add_parser("inspect", help="Inspect a file")
    parser_inspect.add_argument("path", help="Path to the file to inspect")
    parser_inspect.add_argument(
        "--raw",
        action="store_true",
        help="Include raw media/image metadata sections"
    )
    parser_inspect.add_argument(
        "--essential",
        action="store_true",
        help="Show only essential sections"
    )
    parser_inspect.add_argument(
        "--asset-id",
        default=None,
        help="Library asset identifier (inspects as a Photos item)"
    )
    parser_inspect.add_argument(
        "--catalog",
        default=None,
        help="JSON library export used to resolve --asset-id"
    )
    parser_inspect.add_argument(
        "--db",
        default=None,
        help="Preferences database to read defaults from"
    )
    parser_inspect.add_argument(
        "--concurrent",
        action="store_true",
        help="Issue enrichment extractor calls concurrently"
    )
    parser_inspect.add_argument(
        "--no-preview",
        dest="preview",
        action="store_false",
        help="Skip preview image generation"
    )
    parser_inspect.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON"
    )
    parser_inspect.set_defaults(func=cmd_inspect)

    # Preferences command
    parser_prefs = subparsers.add_parser("preferences", help="Show or update preferences")
    parser_prefs.add_argument(
        "--db",
        default="./metainspect.db",
        help="Preferences database (default: ./metainspect.db)"
    )
    parser_prefs.add_argument("--raw", choices=("on", "off"), default=None)
    parser_prefs.add_argument("--essential", choices=("on", "off"), default=None)
    parser_prefs.set_defaults(func=cmd_preferences)

    # Serve command
    parser_serve = subparsers.add_parser("serve", help="Run the HTTP control service")
    parser_serve.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser_serve.add_argument("--port", type=int, default=8085, help="Port to listen on (default: 8085)")
    parser_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


__all__ = [
    "main",
    "build_parser",
    "cmd_inspect",
    "cmd_preferences",
    "cmd_serve",
    "render_report",
    "report_to_json",
    "CLIError",
    "ValidationError",
]
