import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from pdfcheck.core.command_handler import CommandHandler
from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.core.services.analysis_service import AnalysisService
from pdfcheck.core.services.detection_service import DetectionService
from pdfcheck.core.services.guideline_service import GuidelineService
from pdfcheck.core.services.history_loader import HistoryLoader
from pdfcheck.domain.events.analysis_events import PDF_DETECTED_CHANNEL, PdfDetectedEvent
from pdfcheck.domain.interfaces.filesystem import FileSystem, FolderWatcher
from pdfcheck.domain.models.analysis import AnalysisMode, RunOutcome
from pdfcheck.infrastructure.events.local_bus import LocalEventBus


@pytest.fixture
def mock_file_system():
    mock = MagicMock(spec=FileSystem)
    mock.find_pdfs = AsyncMock(return_value=["/docs/a.pdf", "/docs/b.pdf"])
    return mock


@pytest.fixture
def mock_watcher():
    mock = MagicMock(spec=FolderWatcher)
    mock.watch = AsyncMock()
    return mock


@pytest.fixture
def empty_store():
    return FileRecordStore()


@pytest.fixture
def handler(empty_store, event_bus, mock_ui, mock_history_store, mock_embedded_store,
            mock_file_system, mock_watcher):
    loader = HistoryLoader(empty_store, mock_history_store, mock_embedded_store)
    analysis_service = MagicMock(spec=AnalysisService)
    analysis_service.run = AsyncMock(return_value=None)
    guideline_service = MagicMock(spec=GuidelineService)
    guideline_service.run = AsyncMock(return_value=None)
    return CommandHandler(
        store=empty_store,
        analysis_service=analysis_service,
        guideline_service=guideline_service,
        history_loader=loader,
        file_system=mock_file_system,
        ui=mock_ui,
        detection_service=DetectionService(loader, event_bus, mock_ui),
        folder_watcher=mock_watcher,
    )


def test_analyze_resolves_paths_through_file_system_port(handler: CommandHandler, empty_store: FileRecordStore,
                                                          mock_file_system: MagicMock, mock_ui: MagicMock):
    handler.analysis_service.run.return_value = RunOutcome(
        success=True, response="shared", updated_paths=["/docs/a.pdf", "/docs/b.pdf"]
    )

    asyncio.run(handler.handle_analyze(["/docs"], compare=True, instruction="dates"))

    mock_file_system.find_pdfs.assert_awaited_once_with(["/docs"])
    handler.analysis_service.run.assert_awaited_once_with(AnalysisMode.COMPARE, "dates")
    assert [r.path for r in empty_store] == ["/docs/a.pdf", "/docs/b.pdf"]
    assert all(r.checked for r in empty_store)
    mock_ui.display_output.assert_called_once_with("shared", title="Comparative analysis")


def test_analyze_reports_unresolvable_paths(handler: CommandHandler, mock_file_system: MagicMock,
                                           mock_ui: MagicMock):
    mock_file_system.find_pdfs.side_effect = FileNotFoundError("No PDF files found for: *.docx")

    asyncio.run(handler.handle_analyze(["*.docx"]))

    handler.analysis_service.run.assert_not_awaited()
    mock_ui.display_error.assert_called_once_with("Analysis failed: No PDF files found for: *.docx")


def test_watch_tracks_detected_pdfs_and_stops_listening(handler: CommandHandler, empty_store: FileRecordStore,
                                                       event_bus: LocalEventBus, mock_watcher: MagicMock,
                                                       mock_ui: MagicMock):
    async def detect_one(folder, duration=None):
        assert event_bus.subscriber_count(PDF_DETECTED_CHANNEL) == 1
        await event_bus.publish(PDF_DETECTED_CHANNEL, PdfDetectedEvent("/in/new.pdf", "new.pdf").to_payload())

    mock_watcher.watch.side_effect = detect_one

    asyncio.run(handler.handle_watch("/in", duration=5.0))

    mock_watcher.watch.assert_awaited_once_with("/in", duration=5.0)
    assert [r.path for r in empty_store] == ["/in/new.pdf"]
    assert event_bus.subscriber_count(PDF_DETECTED_CHANNEL) == 0
    assert handler.detection_service.listening is False
    mock_ui.display_info.assert_any_call("New PDF: new.pdf")
    mock_ui.display_records.assert_called_once_with(empty_store.records, title="Detected files")


def test_watch_failure_still_stops_listening(handler: CommandHandler, event_bus: LocalEventBus,
                                             mock_watcher: MagicMock, mock_ui: MagicMock):
    mock_watcher.watch.side_effect = FileNotFoundError("Not a directory: /missing")

    asyncio.run(handler.handle_watch("/missing"))

    assert event_bus.subscriber_count(PDF_DETECTED_CHANNEL) == 0
    mock_ui.display_error.assert_called_once_with("Watching failed: Not a directory: /missing")
    mock_ui.display_records.assert_not_called()


def test_watch_without_new_files(handler: CommandHandler, mock_ui: MagicMock):
    asyncio.run(handler.handle_watch("/in", duration=0.0))
    mock_ui.display_info.assert_called_with("No new PDFs detected.")
