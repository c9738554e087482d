"""
Inspection workflow state machine.

States: SOURCE -> INSPECTING -> RESULT, with is_running and has_report
carried alongside the step as orthogonal flags.

Transitions are a pure function of (state, event). States are frozen and
replaced wholesale on every transition.

| Event               | Precondition              | Result                              |
|---------------------|---------------------------|-------------------------------------|
| STARTED             | not running               | INSPECTING, running, no report      |
| BASELINE_READY      | running                   | INSPECTING, running, report         |
| ENRICHMENT_FINISHED | running and has report    | RESULT, idle, report                |
| FAILED / CANCELLED  | always valid              | RESULT if report else SOURCE, idle  |
| RESET               | always valid              | SOURCE, idle, no report             |

FAILED and CANCELLED never raise: a run can be aborted from any state and
partial results are preserved rather than discarded.
"""

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from .errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class InspectionStep(str, Enum):
    """Coarse workflow step shown by the presentation layer."""

    SOURCE = "source"
    INSPECTING = "inspecting"
    RESULT = "result"

    @property
    def title(self) -> str:
        return self.value.capitalize()


class InspectionEvent(str, Enum):
    """Events accepted by the workflow reducer."""

    STARTED = "started"
    BASELINE_READY = "baseline_ready"
    ENRICHMENT_FINISHED = "enrichment_finished"
    FAILED = "failed"
    CANCELLED = "cancelled"
    RESET = "reset"


class InspectionState(BaseModel):
    """Immutable workflow state snapshot."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    step: InspectionStep = InspectionStep.SOURCE
    is_running: bool = False
    has_report: bool = False

    @model_validator(mode="after")
    def validate_result_is_idle(self) -> "InspectionState":
        """RESULT is only reachable once the run has stopped."""
        if self.step == InspectionStep.RESULT and self.is_running:
            raise ValueError("Result step cannot be running")
        return self

    def describe(self) -> str:
        return (
            f"{self.step.value}(running={self.is_running}, "
            f"report={self.has_report})"
        )


INITIAL_STATE = InspectionState()


def transition(state: InspectionState, event: InspectionEvent) -> InspectionState:
    """
    Compute the next workflow state.

    Args:
        state: Current state
        event: Event to apply

    Returns:
        The new state (state itself is never modified)

    Raises:
        InvalidTransitionError: If the event's precondition does not hold
    """
    if event == InspectionEvent.STARTED:
        if state.is_running:
            raise InvalidTransitionError(state.describe(), event.value)
        return InspectionState(step=InspectionStep.INSPECTING, is_running=True, has_report=False)

    if event == InspectionEvent.BASELINE_READY:
        if not state.is_running:
            raise InvalidTransitionError(state.describe(), event.value)
        return InspectionState(step=InspectionStep.INSPECTING, is_running=True, has_report=True)

    if event == InspectionEvent.ENRICHMENT_FINISHED:
        if not (state.is_running and state.has_report):
            raise InvalidTransitionError(state.describe(), event.value)
        return InspectionState(step=InspectionStep.RESULT, is_running=False, has_report=True)

    if event in (InspectionEvent.FAILED, InspectionEvent.CANCELLED):
        step = InspectionStep.RESULT if state.has_report else InspectionStep.SOURCE
        return InspectionState(step=step, is_running=False, has_report=state.has_report)

    if event == InspectionEvent.RESET:
        return INITIAL_STATE

    raise InvalidTransitionError(state.describe(), str(event))


class InspectionWorkflowReducer:
    """Injectable wrapper around transition() that logs every step."""

    def transition(self, state: InspectionState, event: InspectionEvent) -> InspectionState:
        next_state = transition(state, event)
        logger.debug(
            f"Inspection transition {event.value}: "
            f"{state.describe()} -> {next_state.describe()}"
        )
        return next_state
