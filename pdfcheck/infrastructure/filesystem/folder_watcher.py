"""Polling folder watcher.

Scans a folder tree at a fixed interval and publishes one ``pdf-detected``
event for every PDF that was not there on the previous scan. Files present
when watching starts are not reported.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Set

from pdfcheck.domain.events.analysis_events import PDF_DETECTED_CHANNEL, PdfDetectedEvent
from pdfcheck.domain.interfaces.event_bus import EventBus
from pdfcheck.domain.interfaces.filesystem import FolderWatcher
from pdfcheck.infrastructure.filesystem.local_fs import PDF_SUFFIX

logger = logging.getLogger(__name__)


def scan_pdfs(root: Path) -> Set[str]:
    """Absolute paths of every PDF below ``root``."""
    return {
        str(path.resolve())
        for path in root.rglob("*")
        if path.is_file() and path.suffix.lower() == PDF_SUFFIX
    }


class PollingFolderWatcher(FolderWatcher):
    """Publishes newly created PDFs below one folder on the event bus."""

    def __init__(self, event_bus: EventBus, interval_seconds: float = 2.0):
        self.event_bus = event_bus
        self.interval_seconds = interval_seconds
        self.root: Optional[Path] = None
        self._seen: Set[str] = set()

    async def prime(self, folder: str) -> None:
        """Remembers what is already in ``folder`` so only later files are reported."""
        root = Path(folder).expanduser()
        if not root.is_dir():
            raise FileNotFoundError(f"Not a directory: {folder}")
        self.root = root.resolve()
        self._seen = await asyncio.to_thread(scan_pdfs, self.root)
        logger.info(f"Watching {self.root} ({len(self._seen)} existing PDF(s))")

    async def poll(self) -> List[str]:
        """Scans once and publishes the PDFs that appeared since the last scan."""
        if self.root is None:
            raise RuntimeError("Watcher has not been primed with a folder.")
        current = await asyncio.to_thread(scan_pdfs, self.root)
        new = sorted(current - self._seen)
        # Removed files are forgotten so a re-created file is reported again.
        self._seen = current
        for path in new:
            logger.debug(f"Detected new PDF: {path}")
            await self.event_bus.publish(
                PDF_DETECTED_CHANNEL, PdfDetectedEvent(path, Path(path).name).to_payload()
            )
        return new

    async def watch(self, folder: str, duration: Optional[float] = None) -> None:
        """Polls ``folder`` until cancelled, or for ``duration`` seconds when given."""
        await self.prime(folder)
        loop = asyncio.get_running_loop()
        deadline = None if duration is None else loop.time() + duration
        while deadline is None or loop.time() < deadline:
            delay = self.interval_seconds
            if deadline is not None:
                delay = min(delay, max(0.0, deadline - loop.time()))
            await asyncio.sleep(delay)
            await self.poll()
