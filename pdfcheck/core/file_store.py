"""File Record Store: owns the canonical list of tracked files.

The list object itself is never replaced (``clear`` empties it in place), so a
view layer holding a reference to ``records`` keeps seeing the live list.
"""

import logging
from typing import Iterator, List, Optional

from pdfcheck.domain.models.common import FilePath
from pdfcheck.domain.models.file_record import FileRecord

logger = logging.getLogger(__name__)


class FileRecordStore:
    """Ordered collection of FileRecords keyed by path."""

    def __init__(self) -> None:
        self._records: List[FileRecord] = []
        self.displayed_path: Optional[FilePath] = None

    @property
    def records(self) -> List[FileRecord]:
        """The live record list, in insertion order."""
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._records)

    def add(self, record: FileRecord) -> bool:
        """Appends ``record`` unless its path is already tracked.

        Returns:
            True if the record was inserted, False if it was a duplicate.
        """
        if self.find_by_path(record.path) is not None:
            logger.debug(f"Ignoring duplicate record for path: {record.path}")
            return False
        self._records.append(record)
        logger.debug(f"Tracking file: {record.path}")
        return True

    def add_path(self, path: str, checked: bool = True) -> Optional[FileRecord]:
        """Creates and inserts a record for ``path``; returns None if already tracked."""
        record = FileRecord.from_path(path, checked=checked)
        return record if self.add(record) else None

    def remove(self, index: int) -> FileRecord:
        """Removes and returns the record at ``index``."""
        record = self._records.pop(index)
        if self.displayed_path == record.path:
            self.displayed_path = None
        logger.debug(f"Stopped tracking file: {record.path}")
        return record

    def clear(self) -> None:
        """Drops every record and invalidates the displayed result."""
        self._records.clear()
        self.displayed_path = None
        logger.debug("Cleared all tracked files")

    def set_checked(self, index: int, value: bool) -> None:
        self._records[index].checked = value

    def select_all(self) -> None:
        for record in self._records:
            record.checked = True

    def select_none(self) -> None:
        for record in self._records:
            record.checked = False

    def find_by_path(self, path: str) -> Optional[FileRecord]:
        for record in self._records:
            if record.path == path:
                return record
        return None

    def find_by_name(self, name: str) -> Optional[FileRecord]:
        """Returns the first record whose display name equals ``name``.

        Individual-mode responses identify files by display name only. When
        two tracked files share a name, the earlier one receives the result
        and the later one is never matched.
        """
        for record in self._records:
            if record.name == name:
                return record
        return None

    def get_checked(self) -> List[FileRecord]:
        return [record for record in self._records if record.checked]

    def show_result(self, index: int) -> FileRecord:
        """Marks the record at ``index`` as the one whose result is displayed."""
        record = self._records[index]
        self.displayed_path = record.path
        return record

    # --- Aggregate flags used by the UI-state deriver ---

    @property
    def has_files(self) -> bool:
        return bool(self._records)

    @property
    def has_checked(self) -> bool:
        return any(record.checked for record in self._records)

    @property
    def has_results_selected(self) -> bool:
        return any(record.checked and record.has_result for record in self._records)

    @property
    def any_analyzing(self) -> bool:
        return any(record.analyzing for record in self._records)
