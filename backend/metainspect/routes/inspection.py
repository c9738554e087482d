"""
Inspection control endpoints.

HTTP adapter over the InspectionEngine commands. Clients submit commands
(start, cancel, reset, rerun) and poll state snapshots; nothing here holds
workflow state of its own.

Endpoints:
- POST /inspection/start
- POST /inspection/cancel
- POST /inspection/reset
- POST /inspection/rerun
- GET  /inspection/state
- GET  /inspection/report
- GET  /inspection/preferences
- PUT  /inspection/preferences
"""

import base64
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from ..inspection.engine import InspectionEngine, InspectionSnapshot
from ..inspection.errors import InvalidTransitionError, NoActiveRequestError
from ..metadata.models import InputChannel, InspectionRequest, Report
from ..persistence.errors import PersistenceError
from ..persistence.preferences import Preferences

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inspection", tags=["inspection"])


class StartInspectionRequest(BaseModel):
    """Request body for starting an inspection."""

    model_config = ConfigDict(extra="forbid")

    source_path: str
    channel: InputChannel = InputChannel.FILES
    asset_identifier: Optional[str] = None


class PreferencesRequest(BaseModel):
    """Request body for updating persisted preferences."""

    model_config = ConfigDict(extra="forbid")

    include_raw_metadata: bool
    show_only_essential: bool


class StateResponse(BaseModel):
    """Polled engine state, without the report body."""

    model_config = ConfigDict(extra="forbid")

    run_id: int
    step: str
    is_running: bool
    has_report: bool
    can_cancel: bool
    is_cancelling: bool
    status_message: str
    error_message: Optional[str] = None


class ReportResponse(BaseModel):
    """Report snapshot with the preview image base64-encoded."""

    model_config = ConfigDict(extra="forbid")

    item_name: str
    item_subtitle: str
    channel: InputChannel
    sections: List[Dict[str, Any]]
    warnings: List[str]
    preview_image_base64: Optional[str] = None
    inspected_at: datetime
    source_path: str


class OperationResponse(BaseModel):
    """Generic command result."""

    model_config = ConfigDict(extra="forbid")

    success: bool
    message: str
    state: StateResponse


def _engine(request: Request) -> InspectionEngine:
    return request.app.state.inspection_engine


def state_response(snapshot: InspectionSnapshot) -> StateResponse:
    return StateResponse(
        run_id=snapshot.run_id,
        step=snapshot.state.step.value,
        is_running=snapshot.state.is_running,
        has_report=snapshot.state.has_report,
        can_cancel=snapshot.can_cancel,
        is_cancelling=snapshot.is_cancelling,
        status_message=snapshot.status_message,
        error_message=snapshot.error_message,
    )


def report_response(report: Report) -> ReportResponse:
    preview = None
    if report.preview_image is not None:
        preview = base64.b64encode(report.preview_image).decode("ascii")
    return ReportResponse(
        item_name=report.item_name,
        item_subtitle=report.item_subtitle,
        channel=report.channel,
        sections=[section.model_dump() for section in report.sections],
        warnings=list(report.warnings),
        preview_image_base64=preview,
        inspected_at=report.inspected_at,
        source_path=report.source_path,
    )


@router.post("/start", response_model=OperationResponse, status_code=202)
async def start_inspection(body: StartInspectionRequest, request: Request):
    """Start inspecting an item. Rejected with 409 while a run is active."""
    engine = _engine(request)
    try:
        inspection_request = InspectionRequest(
            source_path=body.source_path,
            channel=body.channel,
            asset_identifier=body.asset_identifier,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        engine.start(inspection_request)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return OperationResponse(
        success=True,
        message=f"Inspection started for {body.source_path}",
        state=state_response(engine.snapshot()),
    )


@router.post("/cancel", response_model=OperationResponse)
async def cancel_inspection(request: Request):
    engine = _engine(request)
    cancelled = engine.cancel()
    return OperationResponse(
        success=cancelled,
        message="Cancellation requested" if cancelled else "No inspection to cancel",
        state=state_response(engine.snapshot()),
    )


@router.post("/reset", response_model=OperationResponse)
async def reset_inspection(request: Request):
    engine = _engine(request)
    engine.reset()
    return OperationResponse(
        success=True,
        message="Inspection reset",
        state=state_response(engine.snapshot()),
    )


@router.post("/rerun", response_model=OperationResponse, status_code=202)
async def rerun_inspection(request: Request):
    """Re-inspect the last item under the current preferences."""
    engine = _engine(request)
    try:
        engine.rerun()
    except NoActiveRequestError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return OperationResponse(
        success=True,
        message="Inspection restarted",
        state=state_response(engine.snapshot()),
    )


@router.get("/state", response_model=StateResponse)
async def get_state(request: Request):
    return state_response(_engine(request).snapshot())


@router.get("/report", response_model=ReportResponse)
async def get_report(request: Request):
    """Current report with the essential-only filter applied."""
    report = _engine(request).snapshot().visible_report
    if report is None:
        raise HTTPException(status_code=404, detail="No report available")
    return report_response(report)


@router.get("/preferences", response_model=PreferencesRequest)
async def get_preferences(request: Request):
    settings = _engine(request).settings
    return PreferencesRequest(
        include_raw_metadata=settings.include_raw_metadata,
        show_only_essential=settings.show_only_essential,
    )


@router.put("/preferences", response_model=PreferencesRequest)
async def update_preferences(body: PreferencesRequest, request: Request):
    """
    Persist preferences and apply them to the engine.

    The raw-metadata toggle takes effect at the next run; an active run
    keeps the settings it started with.
    """
    engine = _engine(request)
    store = request.app.state.preferences_store

    try:
        store.save(Preferences(**body.model_dump()))
    except PersistenceError as e:
        logger.error(f"Failed to save preferences: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to save preferences: {e}")

    engine.update_settings(engine.settings.model_copy(update=body.model_dump()))
    return body
