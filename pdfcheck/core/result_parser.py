"""Turns one backend response into per-file (or shared) results.

Individual-mode responses are a concatenation of sections::

    \\n## 📄 <file name>\\n---\\n<content>\\n

The marker literal is part of the wire format shared with existing
backends and must not change.
"""

import logging
import re
from typing import Dict, List, Sequence

from pdfcheck.domain.models.analysis import AnalysisMode
from pdfcheck.domain.models.common import (
    COMPARE_DOCUMENT_TYPE,
    SECTION_MARKER,
    SECTION_SEPARATOR,
    FilePath,
)
from pdfcheck.domain.models.file_record import FileRecord
from pdfcheck.core.file_store import FileRecordStore

logger = logging.getLogger(__name__)

_SECTION_SPLIT = re.compile(r"(?:^|\n)" + re.escape(SECTION_MARKER))
_LEADING_SEPARATOR = re.compile(r"^" + re.escape(SECTION_SEPARATOR) + r"\n")


def parse_individual_results(response: str) -> Dict[str, str]:
    """Splits an individual-mode response into ``{file name: content}``.

    Blank chunks and sections whose name line is blank are dropped. Text
    before the first marker is not special: if it is not blank, its first
    line becomes a section name like any other. If a name repeats, the last
    section wins.
    """
    results: Dict[str, str] = {}
    for section in _SECTION_SPLIT.split(response or ""):
        if not section.strip():
            continue
        name, _, body = section.partition("\n")
        name = name.strip()
        if not name:
            continue
        content = _LEADING_SEPARATOR.sub("", body, count=1).strip()
        if name in results:
            logger.debug(f"Section for '{name}' appears more than once; keeping the last one")
        results[name] = content
    return results


def apply_analysis_response(
    store: FileRecordStore,
    requested: Sequence[FileRecord],
    response: str,
    mode: AnalysisMode,
    analyzed_at: str,
) -> List[FilePath]:
    """Writes a successful response back onto the store's records.

    Compare mode gives every requested record the same shared result.
    Individual mode routes each section by display name; sections naming no
    tracked file are discarded and requested files without a section keep
    their previous result.

    Returns:
        Paths of the records that were updated.
    """
    updated: List[FilePath] = []

    if mode == AnalysisMode.COMPARE:
        for record in requested:
            record.set_result(
                response,
                analyzed_at=analyzed_at,
                compare_mode=True,
                document_type=COMPARE_DOCUMENT_TYPE,
            )
            updated.append(record.path)
        return updated

    for name, content in parse_individual_results(response).items():
        record = store.find_by_name(name)
        if record is None:
            logger.debug(f"Discarding section for untracked file: {name}")
            continue
        record.set_result(content, analyzed_at=analyzed_at, compare_mode=False, embedded=True)
        updated.append(record.path)

    missing = [r.name for r in requested if r.path not in updated]
    if missing:
        logger.info(f"No section returned for {len(missing)} file(s); keeping previous results: {missing}")
    return updated


def apply_analysis_failure(requested: Sequence[FileRecord], message: str) -> List[FilePath]:
    """Marks every requested record as failed with ``message``."""
    for record in requested:
        record.set_error(message)
    return [record.path for record in requested]
