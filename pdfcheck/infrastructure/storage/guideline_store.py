"""JSON-file implementation of the GuidelineStore port.

Guidelines live next to the documents they describe, in
``<project folder>/.guidelines.json``::

    {"common": ["..."], "categories": {"contract": ["..."], "invoice": ["..."]}}

Analyzer output that cannot be read as guidelines is kept verbatim in
``<project folder>/.guidelines.md`` instead.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles

from pdfcheck.domain.interfaces.storage import GuidelineStore
from pdfcheck.domain.models.analysis import Guidelines

logger = logging.getLogger(__name__)

GUIDELINES_FILE = ".guidelines.json"
RAW_GUIDELINES_FILE = ".guidelines.md"

# Items per section handed to the analyzer with each prompt
RELEVANT_ITEMS = 5


def parse_guidelines(text: str) -> Optional[Guidelines]:
    """Reads guidelines from analyzer output, which may wrap the JSON in a code fence.

    Everything from the first ``{`` to the last ``}`` is decoded. Returns None
    when that is not a guidelines object.
    """
    start, end = text.find("{"), text.rfind("}")
    candidate = text[start:end + 1] if start != -1 and end > start else text
    try:
        return Guidelines.from_dict(json.loads(candidate))
    except ValueError as e:
        logger.debug(f"Output is not a guidelines object: {e}")
        return None


def render_guidelines(guidelines: Guidelines) -> str:
    """Markdown summary of the guidelines for display."""
    lines: List[str] = ["## Guidelines", ""]
    if guidelines.common:
        lines.append("### Common")
        lines.extend(f"- {item}" for item in guidelines.common)
    for category, items in guidelines.categories.items():
        lines.extend(["", f"### {category}"])
        lines.extend(f"- {item}" for item in items)
    return "\n".join(lines) + "\n"


def relevant_guidelines(guidelines: Optional[Guidelines], document_types: Sequence[str]) -> Optional[str]:
    """The common items plus the items of each given document type, a few of each.

    Returns None when nothing applies.
    """
    if guidelines is None:
        return None
    relevant: List[str] = []
    if guidelines.common:
        relevant.append("[Common]")
        relevant.extend(guidelines.common[:RELEVANT_ITEMS])
    for doc_type in document_types:
        items = guidelines.categories.get(doc_type)
        if items:
            relevant.append(f"[{doc_type}]")
            relevant.extend(items[:RELEVANT_ITEMS])
    return "\n".join(relevant) if relevant else None


class JsonGuidelineStore(GuidelineStore):
    """Keeps one guidelines file per project folder."""

    def guidelines_path(self, folder: str) -> Path:
        return Path(folder) / GUIDELINES_FILE

    async def load(self, folder: str) -> Optional[Guidelines]:
        path = self.guidelines_path(folder)
        if not path.is_file():
            return None
        try:
            async with aiofiles.open(path, mode='r', encoding='utf-8') as f:
                return Guidelines.from_dict(json.loads(await f.read()))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable guidelines file {path}: {e}")
            return None

    async def _write(self, path: Path, content: str) -> None:
        if not await asyncio.to_thread(path.parent.is_dir):
            raise FileNotFoundError(f"Guideline folder does not exist: {path.parent}")
        async with aiofiles.open(path, mode='w', encoding='utf-8') as f:
            await f.write(content)
        logger.debug(f"Wrote {path}")

    async def save(self, folder: str, guidelines: Guidelines) -> None:
        await self._write(
            self.guidelines_path(folder),
            json.dumps(guidelines.to_dict(), ensure_ascii=False, indent=2),
        )

    async def save_raw(self, folder: str, text: str) -> None:
        await self._write(Path(folder) / RAW_GUIDELINES_FILE, text)
