"""JSON-file implementation of the HistoryStore port.

History is kept per project folder (the directory containing the PDF) in
``<history dir>/<folder hash>.json``::

    {"project_folder": "...", "entries": [{file_name, file_path, analyzed_at,
                                            document_type, summary, issues}]}
"""

import asyncio
import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import aiofiles

from pdfcheck.domain.interfaces.storage import HistoryStore
from pdfcheck.domain.models.analysis import HistoryEntry
from pdfcheck.domain.models.common import TIMESTAMP_FORMAT, Timestamp
from pdfcheck.infrastructure.backend.document_types import classify_result, extract_issues

logger = logging.getLogger(__name__)

SUMMARY_LINES = 10


def folder_hash(project_folder: str) -> str:
    """Stable file stem for a project folder."""
    return hashlib.sha256(project_folder.encode("utf-8")).hexdigest()[:16]


def create_history_entry(file_name: str, file_path: str, result: str) -> HistoryEntry:
    """Builds an entry from a result: document type, warning lines and a short summary."""
    return HistoryEntry(
        file_path=file_path,
        file_name=file_name,
        analyzed_at=Timestamp(datetime.now().strftime(TIMESTAMP_FORMAT)),
        summary="\n".join(result.splitlines()[:SUMMARY_LINES]),
        document_type=classify_result(result),
        issues=extract_issues(result),
    )


class JsonHistoryStore(HistoryStore):
    """Stores analysis history as one JSON document per project folder."""

    def __init__(self, history_dir: Path, max_entries: int = 50):
        self.history_dir = Path(history_dir)
        self.max_entries = max_entries
        # Concurrent saves for one folder would each rewrite the same file.
        self._write_lock = asyncio.Lock()
        logger.debug(f"JsonHistoryStore using {self.history_dir}")

    def history_path(self, project_folder: str) -> Path:
        return self.history_dir / f"{folder_hash(project_folder)}.json"

    async def _read_json(self, path: Path) -> Dict[str, Any]:
        async with aiofiles.open(path, mode='r', encoding='utf-8') as f:
            return json.loads(await f.read())

    async def load_all(self) -> List[HistoryEntry]:
        if not self.history_dir.is_dir():
            return []

        entries: List[HistoryEntry] = []
        for path in sorted(self.history_dir.glob("*.json")):
            try:
                data = await self._read_json(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable history file {path}: {e}")
                continue
            for raw in data.get("entries", []):
                if isinstance(raw, dict):
                    entries.append(HistoryEntry.from_dict(raw))

        entries.sort(key=lambda entry: entry.analyzed_at, reverse=True)
        return entries

    async def load_folder(self, project_folder: str) -> List[HistoryEntry]:
        path = self.history_path(project_folder)
        if not path.is_file():
            return []
        try:
            data = await self._read_json(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable history file {path}: {e}")
            return []
        return [HistoryEntry.from_dict(raw) for raw in data.get("entries", []) if isinstance(raw, dict)]

    async def save_entry(self, entry: HistoryEntry) -> None:
        async with self._write_lock:
            await self._save_entry(entry)

    async def _save_entry(self, entry: HistoryEntry) -> None:
        project_folder = str(Path(entry.file_path).parent)
        path = self.history_path(project_folder)

        history: Dict[str, Any] = {"project_folder": project_folder, "entries": []}
        if path.is_file():
            try:
                history = await self._read_json(path)
            except (OSError, ValueError) as e:
                logger.warning(f"Replacing unreadable history file {path}: {e}")

        kept = [e for e in history.get("entries", []) if e.get("file_name") != entry.file_name]
        kept.append(entry.to_dict())
        history["entries"] = kept[-self.max_entries:]

        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        async with aiofiles.open(path, mode='w', encoding='utf-8') as f:
            await f.write(json.dumps(history, ensure_ascii=False, indent=2))
        logger.debug(f"Saved history entry for {entry.file_name} to {path}")
