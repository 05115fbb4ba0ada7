"""Routes folder-watch "file detected" notifications into the store."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from pdfcheck.core.services.history_loader import HistoryLoader
from pdfcheck.domain.events.analysis_events import PDF_DETECTED_CHANNEL, PdfDetectedEvent
from pdfcheck.domain.interfaces.event_bus import EventBus, Subscription
from pdfcheck.domain.interfaces.user_interface import UserInterface
from pdfcheck.domain.models.file_record import FileRecord

logger = logging.getLogger(__name__)


class DetectionService:
    """Listens on the pdf-detected channel and tracks each new file."""

    def __init__(self, loader: HistoryLoader, event_bus: EventBus, ui: UserInterface):
        self.loader = loader
        self.event_bus = event_bus
        self.ui = ui
        self._subscription: Optional[Subscription] = None
        self._pending: Set["asyncio.Task[Any]"] = set()

    @property
    def listening(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self) -> None:
        if self.listening:
            return
        self._subscription = await self.event_bus.subscribe(PDF_DETECTED_CHANNEL, self._on_detected)
        logger.info("Listening for detected PDFs")

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._pending:
            await asyncio.gather(*self._pending)
        logger.info("Stopped listening for detected PDFs")

    def _on_detected(self, payload: Dict[str, Any]) -> None:
        event = PdfDetectedEvent.from_payload(payload)
        if not event.path:
            logger.debug(f"Ignoring detection without path: {payload}")
            return
        task = asyncio.get_running_loop().create_task(self._track(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _track(self, event: PdfDetectedEvent) -> List[FileRecord]:
        if self.loader.store.find_by_path(event.path) is not None:
            logger.debug(f"Detected file already tracked: {event.path}")
            return []
        opened = await self.loader.open_files([event.path])
        if opened:
            self.ui.display_info(f"New PDF: {event.name or opened[0].name}")
        return opened
