"""The FileRecord entity: one entry per tracked document."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pdfcheck.domain.models.common import (
    COMPARE_DOCUMENT_TYPE,
    FileName,
    FilePath,
    ResultText,
    Timestamp,
)


def display_name_for(path: str) -> FileName:
    """Derives the display name (final path component) from a path."""
    name = Path(path).name
    return FileName(name or path)


@dataclass
class FileRecord:
    """Entity representing a tracked PDF and its per-file analysis state.

    ``path`` is the sole identity. ``result`` and ``result_is_error`` are
    paired: ``result_is_error`` only has meaning while ``result`` is set.
    """
    path: FilePath
    name: FileName
    checked: bool = True
    result: Optional[ResultText] = None
    result_is_error: bool = False
    analyzed_at: Optional[Timestamp] = None
    document_type: Optional[str] = None
    embedded: bool = False
    analyzing: bool = False
    compare_mode: bool = False

    @classmethod
    def from_path(cls, path: str, checked: bool = True) -> "FileRecord":
        """Creates a fresh record for a newly opened, dropped or detected file."""
        return cls(path=FilePath(path), name=display_name_for(path), checked=checked)

    @property
    def has_result(self) -> bool:
        """True when the record carries a non-error result, even an empty one."""
        return self.result is not None and not self.result_is_error

    def set_result(
        self,
        result: str,
        *,
        analyzed_at: Optional[str] = None,
        compare_mode: bool = False,
        embedded: bool = False,
        document_type: Optional[str] = None,
    ) -> None:
        """Stores a successful result on the record.

        A non-compare result drops a document type left over from an earlier
        compare run.
        """
        self.result = ResultText(result)
        self.result_is_error = False
        self.compare_mode = compare_mode
        self.embedded = embedded
        if analyzed_at is not None:
            self.analyzed_at = Timestamp(analyzed_at)
        if document_type is not None:
            self.document_type = document_type
        elif not compare_mode and self.document_type == COMPARE_DOCUMENT_TYPE:
            self.document_type = None

    def set_error(self, message: str) -> None:
        """Stores an error message; ``analyzed_at`` is left untouched."""
        self.result = ResultText(message)
        self.result_is_error = True
