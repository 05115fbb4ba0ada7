"""
Startup/History Loader.

Populates a store from persisted history and from results embedded in the
PDFs themselves. Collaborators are only read, never written.
"""

import logging
from typing import Iterable, List, Optional

from pdfcheck.core.file_store import FileRecordStore
from pdfcheck.domain.interfaces.storage import EmbeddedResultStore, HistoryStore
from pdfcheck.domain.models.common import COMPARE_DOCUMENT_TYPE, FileName, FilePath, ResultText
from pdfcheck.domain.models.file_record import FileRecord, display_name_for

logger = logging.getLogger(__name__)


class HistoryLoader:
    """Reads history and embedded results into a FileRecordStore."""

    def __init__(
        self,
        store: FileRecordStore,
        history_store: HistoryStore,
        embedded_store: EmbeddedResultStore,
    ):
        self.store = store
        self.history_store = history_store
        self.embedded_store = embedded_store

    async def attach_embedded(self, record: FileRecord) -> bool:
        """Replaces the record's result with the one stored inside its PDF, if any."""
        try:
            embedded = await self.embedded_store.read(record.path)
        except Exception as e:
            logger.warning(f"Could not read embedded result from {record.path}: {e}")
            return False
        if embedded is None or not embedded.result:
            return False
        record.set_result(
            embedded.result,
            analyzed_at=embedded.analyzed_at,
            compare_mode=record.compare_mode,
            embedded=True,
        )
        logger.debug(f"Loaded embedded result for {record.path}")
        return True

    async def load_history(self) -> List[FileRecord]:
        """Adds one unchecked record per history entry (newest entry wins per path)."""
        try:
            entries = await self.history_store.load_all()
        except Exception as e:
            logger.error(f"Failed to load analysis history: {e}", exc_info=True)
            return []

        added: List[FileRecord] = []
        for entry in entries:
            if not entry.file_path:
                continue
            record = FileRecord(
                path=FilePath(entry.file_path),
                name=FileName(entry.file_name or display_name_for(entry.file_path)),
                checked=False,
                result=ResultText(entry.summary) if entry.summary else None,
                analyzed_at=entry.analyzed_at or None,
                document_type=entry.document_type,
                compare_mode=entry.document_type == COMPARE_DOCUMENT_TYPE,
            )
            if self.store.add(record):
                added.append(record)
        logger.info(f"Loaded {len(added)} file(s) from history")
        return added

    async def load_session(self) -> List[FileRecord]:
        """Session start: history first, then full embedded results over the summaries."""
        added = await self.load_history()
        for record in added:
            await self.attach_embedded(record)
        return added

    async def open_files(self, paths: Iterable[str], checked: bool = True) -> List[FileRecord]:
        """Tracks newly opened or dropped files, attaching embedded results.

        Paths already tracked are left untouched but re-checked when
        ``checked`` is requested.
        """
        opened: List[FileRecord] = []
        for path in paths:
            record: Optional[FileRecord] = self.store.add_path(path, checked=checked)
            if record is None:
                record = self.store.find_by_path(path)
                if record is not None and checked:
                    record.checked = True
            else:
                await self.attach_embedded(record)
            if record is not None:
                opened.append(record)
        return opened
