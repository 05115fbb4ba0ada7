import pytest
from typer.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock
from pathlib import Path

from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.domain.interfaces.backend import AnalysisBackend
from pdfcheck.domain.interfaces.storage import EmbeddedResultStore, HistoryStore
from pdfcheck.domain.interfaces.user_interface import UserInterface
from pdfcheck.domain.models.file_record import FileRecord
from pdfcheck.infrastructure.config.settings import clear_test_config, reset_configuration
from pdfcheck.infrastructure.events.local_bus import LocalEventBus



@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def store():
    """A store tracking a.pdf and b.pdf, both checked."""
    store = FileRecordStore()
    store.add(FileRecord.from_path("/docs/a.pdf"))
    store.add(FileRecord.from_path("/docs/b.pdf"))
    return store


@pytest.fixture
def event_bus():
    return LocalEventBus()


@pytest.fixture
def mock_backend():
    mock = MagicMock(spec=AnalysisBackend)
    mock.analyze_pdfs = AsyncMock(return_value="")
    mock.generate_guidelines = AsyncMock(return_value="# Guidelines")
    return mock


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def mock_history_store():
    mock = MagicMock(spec=HistoryStore)
    mock.load_all = AsyncMock(return_value=[])
    mock.load_folder = AsyncMock(return_value=[])
    mock.save_entry = AsyncMock()
    return mock


@pytest.fixture
def mock_embedded_store():
    mock = MagicMock(spec=EmbeddedResultStore)
    mock.read = AsyncMock(return_value=None)
    mock.write = AsyncMock()
    return mock


@pytest.fixture
def pdf_dir(tmp_path: Path):
    """A folder with two (content-free) PDF files and one text file."""
    base = tmp_path / "docs"
    base.mkdir()
    (base / "a.pdf").write_bytes(b"%PDF-1.4\n")
    (base / "b.pdf").write_bytes(b"%PDF-1.4\n")
    (base / "notes.txt").write_text("not a pdf")
    return base


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keeps tests away from the user's configuration and history."""
    for key in ("PDFCHECK_ANALYZER_MODEL", "PDFCHECK_ANALYZER_COMMAND", "PDFCHECK_HISTORY_DIR",
                "PDFCHECK_WATCH_INTERVAL_SECONDS"):
        monkeypatch.delenv(key, raising=False)
    reset_configuration()
    clear_test_config()
    yield
    reset_configuration()
    clear_test_config()
