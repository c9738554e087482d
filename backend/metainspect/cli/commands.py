"""
CLI command implementations.

Commands:
- inspect: Run one inspection and print the report
- preferences: Show or update persisted preferences
- serve: Run the HTTP control service

Exit Codes:
===========
- 0: Success
- 1: Inspection failed (unreadable source or unexpected error)
- 2: Inspection cancelled (Ctrl-C)
- 4: Usage or system error
"""

import argparse
import asyncio
import base64
import json
import logging
import signal
import sys
from pathlib import Path
from typing import NoReturn, Optional

from ..extractors import (
    DefaultPreviewGenerator,
    FilesystemExtractor,
    JsonAssetCatalog,
    default_extractors,
)
from ..inspection.engine import STATUS_CANCELLED, InspectionEngine, InspectionSnapshot
from ..inspection.settings import InspectionSettings
from ..inspection.state import InspectionStep
from ..metadata.models import InputChannel, InspectionRequest, Report
from ..persistence.errors import PersistenceError
from ..persistence.preferences import Preferences, PreferencesStore
from .errors import CLIError, ValidationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 2
EXIT_SYSTEM = 4


def render_report(report: Report) -> str:
    """Plain-text rendering of a report."""
    lines = [report.item_name, report.item_subtitle, ""]
    for section in report.sections:
        lines.append(f"[{section.title}]")
        width = max(len(f.key) for f in section.fields)
        for field in section.fields:
            value = field.value.replace("\n", "\n" + " " * (width + 4))
            lines.append(f"  {field.key.ljust(width)}  {value}")
        lines.append("")
    for warning in report.warnings:
        lines.append(f"! {warning}")
    return "\n".join(lines).rstrip() + "\n"


def report_to_json(report: Report) -> str:
    payload = report.model_dump(mode="json", exclude={"preview_image"})
    if report.preview_image is not None:
        payload["preview_image_base64"] = base64.b64encode(report.preview_image).decode("ascii")
    return json.dumps(payload, indent=2)


def build_request(args: argparse.Namespace) -> InspectionRequest:
    """
    Build an inspection request from parsed arguments.

    Raises:
        ValidationError: If an asset identifier is given without a catalog
    """
    if args.asset_id and not args.catalog:
        raise ValidationError("--asset-id requires --catalog")

    channel = InputChannel.PHOTOS if args.asset_id else InputChannel.FILES
    return InspectionRequest(
        source_path=str(Path(args.path).expanduser()),
        channel=channel,
        asset_identifier=args.asset_id,
    )


def _load_preferences(db_path: Optional[str]) -> Preferences:
    if not db_path:
        return Preferences()
    return PreferencesStore(db_path).load()


async def run_inspection(engine: InspectionEngine, request: InspectionRequest) -> InspectionSnapshot:
    """Run one inspection; SIGINT requests cooperative cancellation."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, engine.cancel)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers unavailable; Ctrl-C will abort immediately")

    def log_status(snapshot: InspectionSnapshot) -> None:
        logger.info(snapshot.status_message)

    unsubscribe = engine.subscribe(log_status)
    try:
        return await engine.run(request)
    finally:
        unsubscribe()
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def cmd_inspect(args: argparse.Namespace) -> NoReturn:
    """
    Inspect a file and print its report.

    Exit codes:
        0: Inspection complete
        1: Inspection failed
        2: Inspection cancelled
        4: Usage or preferences error
    """
    try:
        request = build_request(args)
        preferences = _load_preferences(args.db)
    except (CLIError, PersistenceError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_SYSTEM)

    settings = InspectionSettings(
        include_raw_metadata=args.raw or preferences.include_raw_metadata,
        show_only_essential=args.essential or preferences.show_only_essential,
        concurrent_enrichment=args.concurrent,
        generate_preview=args.preview,
    )
    catalog = JsonAssetCatalog(args.catalog) if args.catalog else None
    engine = InspectionEngine(
        baseline=FilesystemExtractor(),
        enrichers=default_extractors(catalog),
        preview=DefaultPreviewGenerator() if args.preview else None,
        settings=settings,
    )

    snapshot = asyncio.run(run_inspection(engine, request))
    report = snapshot.visible_report

    if report is not None:
        print(report_to_json(report) if args.json else render_report(report))

    if snapshot.error_message:
        print(f"✗ {snapshot.status_message} {snapshot.error_message}", file=sys.stderr)
        sys.exit(EXIT_FAILED)
    if snapshot.status_message == STATUS_CANCELLED or snapshot.state.step != InspectionStep.RESULT:
        print(f"✗ {snapshot.status_message}", file=sys.stderr)
        sys.exit(EXIT_CANCELLED)
    sys.exit(EXIT_OK)


def cmd_preferences(args: argparse.Namespace) -> NoReturn:
    """
    Show or update persisted preferences.

    Exit codes:
        0: Success
        4: Database error
    """
    try:
        store = PreferencesStore(args.db)
        preferences = store.load()
        updates = {}
        if args.raw is not None:
            updates["include_raw_metadata"] = args.raw == "on"
        if args.essential is not None:
            updates["show_only_essential"] = args.essential == "on"
        if updates:
            preferences = preferences.model_copy(update=updates)
            store.save(preferences)
    except PersistenceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_SYSTEM)

    print(json.dumps(preferences.model_dump(), indent=2))
    sys.exit(EXIT_OK)


def cmd_serve(args: argparse.Namespace) -> NoReturn:
    """
    Run the HTTP control service.

    Exit codes:
        0: Server stopped
        4: Server failed to start
    """
    from ..main import run_server

    try:
        run_server(host=args.host, port=args.port)
    except (OSError, PersistenceError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_SYSTEM)
    sys.exit(EXIT_OK)
