"""
Inspection engine: orchestration for one metadata inspection run.

Sequences a run as:
    started -> baseline extraction -> baseline_ready
            -> enrichment extractors (priority order) -> enrichment_finished

with a cancellation checkpoint before and after every extraction call.

Design rules:
- At most one active run per engine; a second start is rejected, not queued
- State is only ever changed through the workflow reducer
- Enrichment output is merged in category priority order, never completion order
- An extractor's contribution is merged whole or not at all
- Settings are captured at 'started'; toggles apply to the next run
- Degraded extractors are logged and omitted, unexpected errors fail the run

The engine publishes immutable InspectionSnapshot objects to subscribers.
The presentation layer subscribes or polls; it never mutates engine state.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from ..extractors.base import (
    BaselineExtractor,
    EnrichmentExtractor,
    EnrichmentResult,
    ExtractionConfig,
    PreviewGenerator,
)
from ..metadata.builder import SectionBuilder
from ..metadata.errors import ExtractionError, ToolNotFoundError, UnreadableSourceError
from ..metadata.models import InspectionRequest, Report
from .cancellation import CancellationToken
from .errors import InspectionCancelled, NoActiveRequestError
from .settings import DEFAULT_INSPECTION_SETTINGS, InspectionSettings
from .state import INITIAL_STATE, InspectionEvent, InspectionState, InspectionWorkflowReducer

logger = logging.getLogger(__name__)


# Status strings shown per phase
STATUS_IDLE = "Pick any item from Photos or Files to inspect metadata."
STATUS_BASELINE = "Reading baseline metadata..."
STATUS_ENRICHING = "Extracting deep technical metadata..."
STATUS_PREVIEW = "Rendering preview..."
STATUS_COMPLETE = "Metadata inspection complete."
STATUS_CANCELLING = "Cancelling metadata inspection..."
STATUS_CANCELLED = "Metadata inspection cancelled."
STATUS_FAILED = "Metadata inspection failed."
STATUS_RERUN = "Updating raw metadata visibility..."


class InspectionSnapshot(BaseModel):
    """Immutable view of the engine, emitted after every change."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    run_id: int
    state: InspectionState
    report: Optional[Report] = None
    status_message: str
    error_message: Optional[str] = None
    is_cancelling: bool = False
    settings: InspectionSettings

    @property
    def can_cancel(self) -> bool:
        return self.state.is_running and not self.is_cancelling

    @property
    def visible_report(self) -> Optional[Report]:
        """Report with the essential-only display filter applied."""
        if self.report is None:
            return None
        return self.report.filtered(self.settings.show_only_essential)


SnapshotListener = Callable[[InspectionSnapshot], None]


class _Run:
    """Bookkeeping for one active run."""

    def __init__(self, run_id: int, request: InspectionRequest, settings: InspectionSettings):
        self.run_id = run_id
        self.request = request
        self.settings = settings
        self.token = CancellationToken()


class InspectionEngine:
    """
    Inspection orchestrator.

    Owns the only mutable reference to the current InspectionState and
    Report. Commands: start(), run(), cancel(), reset(), rerun().
    """

    def __init__(
        self,
        baseline: BaselineExtractor,
        enrichers: Sequence[EnrichmentExtractor] = (),
        preview: Optional[PreviewGenerator] = None,
        settings: Optional[InspectionSettings] = None,
        reducer: Optional[InspectionWorkflowReducer] = None,
    ):
        """
        Initialize the engine.

        Args:
            baseline: Baseline (filesystem) extractor
            enrichers: Enrichment extractors; sorted by category priority
            preview: Optional preview generator
            settings: Initial settings (defaults to DEFAULT_INSPECTION_SETTINGS)
            reducer: Workflow reducer (injectable for tests)
        """
        self.baseline = baseline
        self.enrichers: Tuple[EnrichmentExtractor, ...] = tuple(
            sorted(enrichers, key=lambda e: e.category.priority)
        )
        self.preview = preview
        self._reducer = reducer or InspectionWorkflowReducer()

        self._settings = settings or DEFAULT_INSPECTION_SETTINGS
        self._state: InspectionState = INITIAL_STATE
        self._report: Optional[Report] = None
        self._status = STATUS_IDLE
        self._error: Optional[str] = None
        self._is_cancelling = False

        self._run_counter = 0
        self._run: Optional[_Run] = None
        self._task: Optional["asyncio.Task[InspectionSnapshot]"] = None
        self._active_request: Optional[InspectionRequest] = None
        self._listeners: List[SnapshotListener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> InspectionState:
        return self._state

    @property
    def report(self) -> Optional[Report]:
        return self._report

    @property
    def status_message(self) -> str:
        return self._status

    @property
    def error_message(self) -> Optional[str]:
        return self._error

    @property
    def settings(self) -> InspectionSettings:
        return self._settings

    @property
    def active_request(self) -> Optional[InspectionRequest]:
        return self._active_request

    @property
    def is_inspecting(self) -> bool:
        return self._state.is_running

    @property
    def can_cancel(self) -> bool:
        return self._state.is_running and not self._is_cancelling

    def snapshot(self) -> InspectionSnapshot:
        return InspectionSnapshot(
            run_id=self._run_counter,
            state=self._state,
            report=self._report,
            status_message=self._status,
            error_message=self._error,
            is_cancelling=self._is_cancelling,
            settings=self._settings,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a snapshot listener.

        Returns:
            A callable that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener raised; continuing")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_settings(self, settings: InspectionSettings) -> None:
        """Replace settings. Takes effect at the next start."""
        self._settings = settings
        self._publish()

    def set_include_raw_metadata(self, value: bool) -> None:
        self.update_settings(self._settings.model_copy(update={"include_raw_metadata": value}))

    def set_show_only_essential(self, value: bool) -> None:
        self.update_settings(self._settings.model_copy(update={"show_only_essential": value}))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _apply(self, event: InspectionEvent) -> None:
        self._state = self._reducer.transition(self._state, event)

    def _begin(self, request: InspectionRequest) -> _Run:
        # Fails closed: raises InvalidTransitionError when a run is active
        self._apply(InspectionEvent.STARTED)

        self._run_counter += 1
        run = _Run(self._run_counter, request, self._settings)
        self._run = run
        self._active_request = request
        self._report = None
        self._error = None
        self._is_cancelling = False
        self._status = STATUS_BASELINE

        logger.info(f"Inspection run {run.run_id} started for {request.source_path}")
        self._publish()
        return run

    def start(self, request: InspectionRequest) -> "asyncio.Task[InspectionSnapshot]":
        """
        Start a run in the background on the running event loop.

        Args:
            request: Item to inspect

        Returns:
            The asyncio task driving the run; resolves to the final snapshot

        Raises:
            InvalidTransitionError: If a run is already active
            RuntimeError: If called outside a running event loop
        """
        loop = asyncio.get_running_loop()
        run = self._begin(request)
        self._task = loop.create_task(self._execute(run))
        return self._task

    async def run(self, request: InspectionRequest) -> InspectionSnapshot:
        """Start a run and wait for it to reach a terminal state."""
        return await self.start(request)

    def rerun(self) -> "asyncio.Task[InspectionSnapshot]":
        """
        Re-inspect the last requested item under the current settings.

        Raises:
            NoActiveRequestError: If nothing has been inspected yet
            InvalidTransitionError: If a run is already active
        """
        if self._active_request is None:
            raise NoActiveRequestError()
        task = self.start(self._active_request)
        self._status = STATUS_RERUN
        self._publish()
        return task

    def cancel(self) -> bool:
        """
        Request cooperative cancellation of the active run.

        Returns:
            True if a cancellation was requested, False if nothing to cancel
        """
        if not self.can_cancel or self._run is None:
            return False

        logger.info(f"Cancellation requested for inspection run {self._run.run_id}")
        self._is_cancelling = True
        self._status = STATUS_CANCELLING
        self._run.token.cancel()
        self._publish()
        return True

    def reset(self) -> None:
        """
        Discard the in-flight run unconditionally and return to the initial state.

        Outstanding async work is cancelled first. A run task that is still
        unwinding is stale afterwards and cannot touch engine state.
        """
        if self._run is not None:
            self._run.token.cancel("reset")
        if self._task is not None and not self._task.done():
            self._task.cancel()

        self._run = None
        self._task = None
        self._run_counter += 1
        self._active_request = None
        self._report = None
        self._error = None
        self._is_cancelling = False
        self._status = STATUS_IDLE
        self._apply(InspectionEvent.RESET)

        logger.info("Inspection state reset")
        self._publish()

    # ------------------------------------------------------------------
    # Run protocol
    # ------------------------------------------------------------------

    def _is_stale(self, run: _Run) -> bool:
        return self._run is not run

    def _set_report(self, run: _Run, report: Report) -> None:
        if self._is_stale(run):
            raise InspectionCancelled("stale run")
        self._report = report
        self._publish()

    async def _execute(self, run: _Run) -> InspectionSnapshot:
        request = run.request
        token = run.token

        try:
            token.checkpoint("before baseline")
            report = await self.baseline.extract(request)
            if self._is_stale(run):
                return self.snapshot()

            self._report = report
            self._apply(InspectionEvent.BASELINE_READY)
            self._publish()

            token.checkpoint("after baseline")
            self._status = STATUS_ENRICHING
            self._publish()

            report = await self._enrich(run, report)

            if run.settings.generate_preview and self.preview is not None:
                token.checkpoint("before preview")
                report = await self._attach_preview(run, report)
                token.checkpoint("after preview")

            self._report = report
            self._apply(InspectionEvent.ENRICHMENT_FINISHED)
            self._status = STATUS_COMPLETE
            logger.info(
                f"Inspection run {run.run_id} complete: "
                f"{len(report.sections)} sections, {len(report.warnings)} warnings"
            )

        except InspectionCancelled as e:
            if self._is_stale(run):
                return self.snapshot()
            logger.info(f"Inspection run {run.run_id} cancelled at {e.checkpoint}")
            self._status = STATUS_CANCELLED
            self._error = None
            self._apply(InspectionEvent.CANCELLED)

        except asyncio.CancelledError:
            if self._is_stale(run):
                # Reset already restored the initial state
                return self.snapshot()
            logger.info(f"Inspection run {run.run_id} task cancelled")
            self._status = STATUS_CANCELLED
            self._error = None
            self._apply(InspectionEvent.CANCELLED)
            self._finish(run)
            raise

        except UnreadableSourceError as e:
            if self._is_stale(run):
                return self.snapshot()
            logger.warning(f"Inspection run {run.run_id} failed: {e.source}: {e.reason}")
            self._status = STATUS_FAILED
            self._error = str(e)
            self._apply(InspectionEvent.FAILED)

        except Exception as e:
            if self._is_stale(run):
                return self.snapshot()
            logger.exception(f"Inspection run {run.run_id} failed unexpectedly")
            self._status = STATUS_FAILED
            self._error = str(e) or type(e).__name__
            self._apply(InspectionEvent.FAILED)

        self._finish(run)
        return self.snapshot()

    def _finish(self, run: _Run) -> None:
        self._is_cancelling = False
        self._run = None
        self._task = None
        self._publish()

    async def _enrich(self, run: _Run, report: Report) -> Report:
        """
        Run every enrichment extractor and merge results in priority order.

        The accumulated report is published after each merge, so a later
        cancellation keeps everything merged so far.
        """
        builder = SectionBuilder(report.sections)
        warnings: List[str] = list(report.warnings)
        config = ExtractionConfig(
            include_raw_metadata=run.settings.include_raw_metadata,
            type_hint=_mime_type(report),
        )

        def merge(current: Report, result: EnrichmentResult) -> Report:
            builder.extend(result.sections)
            warnings.extend(result.warnings)
            merged = current.model_copy(update={
                "sections": builder.sections,
                "warnings": tuple(warnings),
                "inspected_at": datetime.now(),
            })
            self._set_report(run, merged)
            return merged

        if not run.settings.concurrent_enrichment:
            for extractor in self.enrichers:
                run.token.checkpoint(f"before {extractor.name}")
                result = await self._call_extractor(extractor, run, config)
                run.token.checkpoint(f"after {extractor.name}")
                report = merge(report, result)
            return report

        run.token.checkpoint("before enrichment")
        loop = asyncio.get_running_loop()
        pending = [
            (extractor, loop.create_task(self._call_extractor(extractor, run, config)))
            for extractor in self.enrichers
        ]
        try:
            for extractor, task in pending:
                result = await task
                run.token.checkpoint(f"after {extractor.name}")
                report = merge(report, result)
        finally:
            for _, task in pending:
                if not task.done():
                    task.cancel()
                elif not task.cancelled():
                    # Mark exceptions of abandoned tasks as retrieved
                    task.exception()
        return report

    async def _call_extractor(
        self,
        extractor: EnrichmentExtractor,
        run: _Run,
        config: ExtractionConfig,
    ) -> EnrichmentResult:
        """Invoke one extractor, degrading expected failures to an empty result."""
        try:
            result = await extractor.extract(run.request, config, run.token)
        except (ExtractionError, ToolNotFoundError) as e:
            logger.warning(
                f"{extractor.name} metadata unavailable for {run.request.source_path}: {e}"
            )
            return EnrichmentResult()

        if result is None:
            logger.debug(f"{extractor.name} not applicable to {run.request.source_path}")
            return EnrichmentResult()
        return result

    async def _attach_preview(self, run: _Run, report: Report) -> Report:
        """Best-effort preview; any failure leaves the report without one."""
        try:
            image = await self.preview.generate(run.request.source_path, _mime_type(report))
        except Exception as e:
            logger.warning(f"Preview generation failed for {run.request.source_path}: {e}")
            return report
        if image is None:
            return report
        return report.model_copy(update={"preview_image": image})


def _mime_type(report: Report) -> Optional[str]:
    section = report.section("Type")
    if section is None:
        return None
    return section.value_for("MIME Type")
