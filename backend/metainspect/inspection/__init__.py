"""
Inspection workflow engine.

Governs the two-phase (baseline -> enrichment) asynchronous pipeline with
cooperative cancellation and failure recovery.

Usage:
    from metainspect.inspection import InspectionEngine
    from metainspect.extractors import FilesystemExtractor, default_extractors

    engine = InspectionEngine(FilesystemExtractor(), default_extractors())
    snapshot = await engine.run(InspectionRequest(source_path="/path/to/clip.mov"))
"""

from .errors import (
    InspectionError,
    InvalidTransitionError,
    InspectionCancelled,
    NoActiveRequestError,
)
from .state import (
    INITIAL_STATE,
    InspectionEvent,
    InspectionState,
    InspectionStep,
    InspectionWorkflowReducer,
    transition,
)
from .cancellation import CancellationToken
from .settings import DEFAULT_INSPECTION_SETTINGS, InspectionSettings
from .engine import InspectionEngine, InspectionSnapshot

__all__ = [
    # Errors
    "InspectionError",
    "InvalidTransitionError",
    "InspectionCancelled",
    "NoActiveRequestError",
    # State machine
    "INITIAL_STATE",
    "InspectionEvent",
    "InspectionState",
    "InspectionStep",
    "InspectionWorkflowReducer",
    "transition",
    # Cancellation & settings
    "CancellationToken",
    "DEFAULT_INSPECTION_SETTINGS",
    "InspectionSettings",
    # Engine
    "InspectionEngine",
    "InspectionSnapshot",
]
