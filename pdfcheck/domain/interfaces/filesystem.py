"""Interface for locating PDF documents on a file system.

Lets the command layer turn user arguments into tracked paths without
depending on a specific file system implementation.
"""

import abc
from typing import Iterable, List, Optional

from pdfcheck.domain.models.common import FilePath


class FileSystem(abc.ABC):
    """Abstract Base Class for file system lookups."""

    @abc.abstractmethod
    async def find_pdfs(self, arguments: Iterable[str]) -> List[FilePath]:
        """Expands files, directories and glob patterns to PDF paths.

        Args:
            arguments: Paths or patterns as given by the user.

        Returns:
            Absolute PDF paths in argument order, without duplicates.

        Raises:
            FileNotFoundError: If an argument matches nothing.
            ValueError: If an argument names an existing non-PDF file.
        """
        pass


class FolderWatcher(abc.ABC):
    """Abstract Base Class for sources of ``pdf-detected`` notifications."""

    @abc.abstractmethod
    async def watch(self, folder: str, duration: Optional[float] = None) -> None:
        """Publishes newly created PDFs below ``folder`` on the event bus.

        Runs until cancelled, or for ``duration`` seconds when given.

        Raises:
            FileNotFoundError: If ``folder`` is not a directory.
        """
        pass
