"""
Core service coordinating a guideline-generation run.

Same shape as an analysis run, but the input is the checked files that
already carry a non-error result, there is no mode, and the single aggregate
document is only displayed, never written back onto the file records.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.core.services.run_scope import RunGuard, open_subscriptions
from pdfcheck.core.ui_state import derive_from_store
from pdfcheck.domain.events.analysis_events import LOG_CHANNEL, PROGRESS_CHANNEL, LogEvent
from pdfcheck.domain.interfaces.backend import AnalysisBackend
from pdfcheck.domain.interfaces.event_bus import EventBus
from pdfcheck.domain.interfaces.user_interface import UserInterface
from pdfcheck.domain.models.analysis import GuidelineRequest, RunOutcome, UiState
from pdfcheck.domain.models.common import LOG_LEVEL_ERROR, InstructionText

logger = logging.getLogger(__name__)


class GuidelineService:
    """Orchestrates guideline generation over already-analyzed files."""

    def __init__(
        self,
        store: FileRecordStore,
        backend: AnalysisBackend,
        event_bus: EventBus,
        ui: UserInterface,
        run_guard: Optional[RunGuard] = None,
    ):
        self.store = store
        self.backend = backend
        self.event_bus = event_bus
        self.ui = ui
        self.run_guard = run_guard or RunGuard()

    def _on_log(self, payload: Dict[str, Any]) -> None:
        event = LogEvent.from_payload(payload)
        self.ui.append_log(event.message, event.level)

    def _on_progress(self, payload: Dict[str, Any]) -> None:
        # Guideline runs never touch per-file state.
        logger.debug(f"Ignoring progress during guideline run: {payload}")

    def refresh_ui_state(self, custom_instruction: str = "") -> UiState:
        state = derive_from_store(self.store, custom_instruction, busy=self.run_guard.active)
        self.ui.apply_ui_state(state)
        return state

    async def run(self, custom_instruction: str = "", folder: Optional[str] = None) -> Optional[RunOutcome]:
        """Generates one guideline document.

        Args:
            custom_instruction: Free text passed to the backend, trimmed.
            folder: Project folder for the guidelines; defaults to the
                parent directory of the first input file.

        Returns:
            The run outcome, or None if no checked file has a usable result.

        Raises:
            RunInProgressError: If another run is already in flight.
        """
        sources = [record for record in self.store.get_checked() if record.has_result]
        if not sources:
            logger.info("Guideline generation requested without analyzed files.")
            self.ui.display_warning("Select at least one file that has an analysis result.")
            return None

        request = GuidelineRequest(
            paths=[record.path for record in sources],
            folder=folder or str(Path(sources[0].path).parent),
            custom_instruction=InstructionText((custom_instruction or "").strip()),
        )

        with self.run_guard.hold("guideline"):
            logger.info(f"Generating guidelines from {len(sources)} file(s) into {request.folder}")
            outcome = RunOutcome(success=False)
            try:
                async with open_subscriptions(
                    self.event_bus,
                    {LOG_CHANNEL: self._on_log, PROGRESS_CHANNEL: self._on_progress},
                ):
                    self.ui.clear_result_view()
                    self.refresh_ui_state(custom_instruction)
                    document = await self.backend.generate_guidelines(request)
                outcome.success = True
                outcome.response = document
                self.ui.display_output(document, title="Guidelines")
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"Guideline run failed: {message}", exc_info=True)
                outcome.error = message
                self.ui.append_log(f"Guideline generation failed: {message}", LOG_LEVEL_ERROR)
                self.ui.display_error(f"Guideline generation failed: {message}")

        outcome.ui_state = self.refresh_ui_state(custom_instruction)
        return outcome
