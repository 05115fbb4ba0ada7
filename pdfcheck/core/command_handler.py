"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), resolves the PDF
arguments into the shared store and delegates the work to the
orchestrators (AnalysisService, GuidelineService, HistoryLoader,
DetectionService).
"""

import logging
from typing import List, Optional, Sequence

from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.core.services.analysis_service import AnalysisService
from pdfcheck.core.services.detection_service import DetectionService
from pdfcheck.core.services.guideline_service import GuidelineService
from pdfcheck.core.services.history_loader import HistoryLoader
from pdfcheck.core.ui_state import derive_from_store
from pdfcheck.domain.interfaces.filesystem import FileSystem, FolderWatcher
from pdfcheck.domain.interfaces.user_interface import UserInterface
from pdfcheck.domain.models.analysis import AnalysisMode
from pdfcheck.domain.models.file_record import FileRecord

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        store: FileRecordStore,
        analysis_service: AnalysisService,
        guideline_service: GuidelineService,
        history_loader: HistoryLoader,
        file_system: FileSystem,
        ui: UserInterface,
        detection_service: Optional[DetectionService] = None,
        folder_watcher: Optional[FolderWatcher] = None,
    ):
        """Initializes the CommandHandler with required services."""
        self.store = store
        self.analysis_service = analysis_service
        self.guideline_service = guideline_service
        self.history_loader = history_loader
        self.file_system = file_system
        self.ui = ui
        self.detection_service = detection_service
        self.folder_watcher = folder_watcher

    async def _open(self, arguments: Sequence[str]) -> List[FileRecord]:
        """Resolves arguments to PDFs, tracks them and checks only those."""
        paths = await self.file_system.find_pdfs(arguments)
        self.store.select_none()
        opened = await self.history_loader.open_files(paths, checked=True)
        logger.info(f"Opened {len(opened)} file(s)")
        return opened

    async def handle_analyze(self, paths: Sequence[str], compare: bool = False, instruction: str = "") -> None:
        """Handles the 'analyze' command."""
        mode = AnalysisMode.COMPARE if compare else AnalysisMode.INDIVIDUAL
        logger.info(f"Handling 'analyze' command ({mode.value}) for {len(paths)} argument(s)")
        try:
            opened = await self._open(paths)
            outcome = await self.analysis_service.run(mode, instruction)
        except Exception as e:
            logger.error(f"Analyze command failed: {e}", exc_info=True)
            self.ui.display_error(f"Analysis failed: {e}")
            return

        if outcome is None:
            return
        self.ui.display_records(opened, title="Analysis results")
        if not outcome.success:
            self.ui.display_error(f"Analysis failed: {outcome.error}")
            return
        if mode == AnalysisMode.COMPARE:
            self.ui.display_output(outcome.response or "", title="Comparative analysis")
            return
        for record in opened:
            if record.path in outcome.updated_paths:
                self.ui.display_result(record)

    async def handle_guidelines(
        self, paths: Sequence[str], folder: Optional[str] = None, instruction: str = ""
    ) -> None:
        """Handles the 'guidelines' command."""
        logger.info(f"Handling 'guidelines' command for {len(paths)} argument(s)")
        try:
            await self._open(paths)
            await self.guideline_service.run(instruction, folder=folder)
        except Exception as e:
            logger.error(f"Guidelines command failed: {e}", exc_info=True)
            self.ui.display_error(f"Guideline generation failed: {e}")

    async def handle_history(self) -> None:
        """Handles the 'history' command."""
        logger.info("Handling 'history' command")
        added = await self.history_loader.load_session()
        if not added:
            self.ui.display_info("No analysis history found.")
            return
        self.ui.display_records(self.store.records, title="History")

    async def handle_status(self, paths: Sequence[str], instruction: str = "") -> None:
        """Handles the 'status' command: tracked files plus which actions are enabled."""
        logger.info(f"Handling 'status' command for {len(paths)} argument(s)")
        try:
            await self._open(paths)
        except Exception as e:
            logger.error(f"Status command failed: {e}", exc_info=True)
            self.ui.display_error(f"Could not open files: {e}")
            return
        self.ui.display_records(self.store.records, title="Files")
        state = derive_from_store(self.store, instruction)
        self.ui.apply_ui_state(state)
        self.ui.display_ui_state(state)

    async def handle_watch(self, folder: str, duration: Optional[float] = None) -> None:
        """Handles the 'watch' command: tracks PDFs created in ``folder`` while watching."""
        if self.detection_service is None or self.folder_watcher is None:
            self.ui.display_error("Folder watching is not available.")
            return
        logger.info(f"Handling 'watch' command for {folder}")
        await self.detection_service.start()
        try:
            self.ui.display_info(f"Watching {folder} for new PDFs. Press Ctrl+C to stop.")
            await self.folder_watcher.watch(folder, duration=duration)
        except Exception as e:
            logger.error(f"Watch command failed: {e}", exc_info=True)
            self.ui.display_error(f"Watching failed: {e}")
            return
        finally:
            await self.detection_service.stop()

        if not self.store.has_files:
            self.ui.display_info("No new PDFs detected.")
            return
        self.ui.display_records(self.store.records, title="Detected files")
