"""
Core service coordinating a single analysis run.

Reads the checked set from the store, opens the run's progress and log
subscriptions, issues exactly one backend request, applies the parsed
response to the store and re-derives the UI state. Subscriptions are
released and every ``analyzing`` flag cleared on every exit path.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.core.result_parser import apply_analysis_failure, apply_analysis_response
from pdfcheck.core.services.run_scope import RunGuard, open_subscriptions
from pdfcheck.core.ui_state import derive_from_store
from pdfcheck.domain.events.analysis_events import (
    LOG_CHANNEL,
    PROGRESS_CHANNEL,
    LogEvent,
    ProgressEvent,
)
from pdfcheck.domain.interfaces.backend import AnalysisBackend
from pdfcheck.domain.interfaces.event_bus import EventBus
from pdfcheck.domain.interfaces.user_interface import UserInterface
from pdfcheck.domain.models.analysis import AnalysisMode, AnalysisRequest, RunOutcome, UiState
from pdfcheck.domain.models.common import (
    LOG_LEVEL_ERROR,
    TIMESTAMP_FORMAT,
    InstructionText,
)
from pdfcheck.domain.models.file_record import FileRecord

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


class AnalysisService:
    """Orchestrates one analysis run at a time (Idle -> Running -> Success|Failed -> Idle)."""

    def __init__(
        self,
        store: FileRecordStore,
        backend: AnalysisBackend,
        event_bus: EventBus,
        ui: UserInterface,
        run_guard: Optional[RunGuard] = None,
        clock: Callable[[], str] = _now,
    ):
        """Initializes the AnalysisService with its dependencies."""
        self.store = store
        self.backend = backend
        self.event_bus = event_bus
        self.ui = ui
        self.run_guard = run_guard or RunGuard()
        self.clock = clock
        logger.info(f"AnalysisService initialized with backend: {backend.__class__.__name__}")

    # --- Channel handlers ---

    def _on_log(self, payload: Dict[str, Any]) -> None:
        event = LogEvent.from_payload(payload)
        self.ui.append_log(event.message, event.level)

    def _on_progress(self, payload: Dict[str, Any]) -> None:
        event = ProgressEvent.from_payload(payload)
        record = self.store.find_by_name(event.file_name)
        if record is None:
            logger.debug(f"Progress for untracked file ignored: {event.file_name}")
            return
        record.analyzing = not event.completed
        logger.debug(
            f"Progress for {event.file_name}: completed={event.completed}, success={event.success}"
        )

    # --- State helpers ---

    def refresh_ui_state(self, custom_instruction: str = "") -> UiState:
        """Re-derives and applies the UI state from the store."""
        state = derive_from_store(self.store, custom_instruction, busy=self.run_guard.active)
        self.ui.apply_ui_state(state)
        return state

    def _begin(self, checked: List[FileRecord], custom_instruction: str) -> None:
        self.store.displayed_path = None
        self.ui.clear_result_view()
        for record in checked:
            record.analyzing = True
        self.refresh_ui_state(custom_instruction)

    def _finish(self) -> None:
        for record in self.store:
            record.analyzing = False

    # --- Run ---

    async def run(self, mode: AnalysisMode, custom_instruction: str = "") -> Optional[RunOutcome]:
        """Runs one analysis over the store's checked set.

        Args:
            mode: Individual (one result per file) or compare (one shared result).
            custom_instruction: Free text passed to the backend, trimmed.

        Returns:
            The run outcome, or None if nothing was checked.

        Raises:
            RunInProgressError: If another run is already in flight.
        """
        mode = AnalysisMode(mode)
        checked = self.store.get_checked()
        if not checked:
            logger.info("Analysis requested with no checked files; nothing to do.")
            self.ui.display_warning("Select at least one file to analyze.")
            return None

        instruction = InstructionText((custom_instruction or "").strip())
        request = AnalysisRequest(
            paths=[record.path for record in checked],
            mode=mode,
            custom_instruction=instruction,
        )

        with self.run_guard.hold("analysis"):
            logger.info(f"Starting {mode.value} analysis of {len(checked)} file(s)")
            outcome = RunOutcome(success=False)
            try:
                async with open_subscriptions(
                    self.event_bus,
                    {LOG_CHANNEL: self._on_log, PROGRESS_CHANNEL: self._on_progress},
                ):
                    self._begin(checked, custom_instruction)
                    response = await self.backend.analyze_pdfs(request)
                self._finish()
                outcome.updated_paths = apply_analysis_response(
                    self.store, checked, response, mode, self.clock()
                )
                outcome.success = True
                outcome.response = response
                logger.info(
                    f"Analysis finished; {len(outcome.updated_paths)} file(s) updated"
                )
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"Analysis run failed: {message}", exc_info=True)
                outcome.error = message
                outcome.updated_paths = apply_analysis_failure(checked, message)
                self.ui.append_log(f"Analysis failed: {message}", LOG_LEVEL_ERROR)
            finally:
                self._finish()

        outcome.ui_state = self.refresh_ui_state(custom_instruction)
        return outcome
