"""Interfaces for the persistence collaborators.

Persisted history, the results embedded inside PDFs and the per-folder
guidelines are owned by external stores. The orchestrators only read them
at session start or when a file is opened; the analysis backend reads them
to give the analyzer context and writes them after each run.
"""

import abc
from typing import List, Optional

from pdfcheck.domain.models.analysis import EmbeddedResult, Guidelines, HistoryEntry


class HistoryStore(abc.ABC):
    """Abstract Base Class for persisted analysis history."""

    @abc.abstractmethod
    async def load_all(self) -> List[HistoryEntry]:
        """Returns every persisted entry, newest first."""
        pass

    @abc.abstractmethod
    async def load_folder(self, project_folder: str) -> List[HistoryEntry]:
        """Returns the entries of one project folder, oldest first."""
        pass

    @abc.abstractmethod
    async def save_entry(self, entry: HistoryEntry) -> None:
        """Persists one entry, replacing an older entry for the same file."""
        pass


class EmbeddedResultStore(abc.ABC):
    """Abstract Base Class for results stored inside the PDF itself."""

    @abc.abstractmethod
    async def read(self, path: str) -> Optional[EmbeddedResult]:
        """Returns the embedded result for ``path``, or None if absent/unreadable."""
        pass

    @abc.abstractmethod
    async def write(self, path: str, result: str, instruction: str = "") -> None:
        """Embeds ``result`` (and the instruction, if any) into the PDF at ``path``."""
        pass


class GuidelineStore(abc.ABC):
    """Abstract Base Class for the guidelines kept in a project folder."""

    @abc.abstractmethod
    async def load(self, folder: str) -> Optional[Guidelines]:
        """Returns the folder's guidelines, or None if absent/unreadable."""
        pass

    @abc.abstractmethod
    async def save(self, folder: str, guidelines: Guidelines) -> None:
        """Replaces the folder's guidelines."""
        pass

    @abc.abstractmethod
    async def save_raw(self, folder: str, text: str) -> None:
        """Keeps analyzer output that could not be read as guidelines."""
        pass
