"""Local file system helpers for turning CLI arguments into PDF paths.

Uses `pathlib` and `glob`; blocking calls run in a worker thread so the
event loop stays responsive.
"""

import asyncio
import glob
import logging
from pathlib import Path
from typing import Iterable, List

from pdfcheck.domain.interfaces.filesystem import FileSystem
from pdfcheck.domain.models.common import FilePath

logger = logging.getLogger(__name__)

PDF_SUFFIX = ".pdf"


class LocalFileSystem(FileSystem):
    """Resolves files, directories and glob patterns to absolute PDF paths."""

    def __init__(self):
        logger.debug("LocalFileSystem initialized.")

    @staticmethod
    def _is_pdf(path: Path) -> bool:
        return path.is_file() and path.suffix.lower() == PDF_SUFFIX

    def _expand(self, argument: str) -> List[FilePath]:
        path = Path(argument).expanduser()
        if path.is_dir():
            found = sorted(p for p in path.iterdir() if self._is_pdf(p))
            logger.debug(f"Found {len(found)} PDF(s) in directory {path}")
            return [FilePath(str(p.resolve())) for p in found]
        if path.exists():
            if not self._is_pdf(path):
                raise ValueError(f"Not a PDF file: {argument}")
            return [FilePath(str(path.resolve()))]
        # recursive=True enables `**` patterns
        matched = sorted(Path(p) for p in glob.glob(argument, recursive=True))
        pdfs = [FilePath(str(p.resolve())) for p in matched if self._is_pdf(p)]
        if not pdfs:
            raise FileNotFoundError(f"No PDF files found for: {argument}")
        return pdfs

    async def find_pdfs(self, arguments: Iterable[str]) -> List[FilePath]:
        """Expands every argument, preserving order and dropping duplicates.

        Raises:
            FileNotFoundError: If an argument matches nothing.
            ValueError: If an argument names an existing non-PDF file.
        """
        result: List[FilePath] = []
        for argument in arguments:
            for pdf in await asyncio.to_thread(self._expand, argument):
                if pdf not in result:
                    result.append(pdf)
        return result
