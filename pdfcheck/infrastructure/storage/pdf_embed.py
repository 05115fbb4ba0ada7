"""
Reads and writes analysis results stored in a PDF's document info.

Values are base64-encoded UTF-8 so that arbitrary result text survives
the PDF string encoding::

    /ShoruiCheckerResult       base64(result)
    /ShoruiCheckerInstruction  base64(custom instruction), optional
    /ShoruiCheckerDate         "%Y-%m-%d %H:%M:%S"
    /ShoruiCheckerVersion      "1.0"
"""

import asyncio
import base64
import binascii
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from pdfcheck.domain.exceptions import BackendError
from pdfcheck.domain.interfaces.storage import EmbeddedResultStore
from pdfcheck.domain.models.analysis import EmbeddedResult
from pdfcheck.domain.models.common import TIMESTAMP_FORMAT, Timestamp

logger = logging.getLogger(__name__)

KEY_RESULT = "/ShoruiCheckerResult"
KEY_INSTRUCTION = "/ShoruiCheckerInstruction"
KEY_DATE = "/ShoruiCheckerDate"
KEY_VERSION = "/ShoruiCheckerVersion"
EMBED_VERSION = "1.0"


def encode_value(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_value(value: str) -> Optional[str]:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


class PdfEmbeddedResultStore(EmbeddedResultStore):
    """EmbeddedResultStore backed by pypdf."""

    def _read_sync(self, path: str) -> Optional[EmbeddedResult]:
        try:
            metadata = PdfReader(path).metadata
        except (OSError, PyPdfError) as e:
            logger.debug(f"Cannot read PDF metadata from {path}: {e}")
            return None
        if not metadata or KEY_RESULT not in metadata:
            return None

        result = decode_value(str(metadata[KEY_RESULT]))
        if result is None:
            logger.warning(f"Embedded result in {path} is not valid base64")
            return None
        instruction = None
        if KEY_INSTRUCTION in metadata:
            instruction = decode_value(str(metadata[KEY_INSTRUCTION]))
        date = str(metadata.get(KEY_DATE, "") or "")
        return EmbeddedResult(result=result, analyzed_at=Timestamp(date), instruction=instruction)

    async def read(self, path: str) -> Optional[EmbeddedResult]:
        return await asyncio.to_thread(self._read_sync, path)

    def _write_sync(self, path: str, result: str, instruction: str) -> None:
        target = Path(path)
        try:
            writer = PdfWriter(clone_from=PdfReader(path))
        except (OSError, PyPdfError) as e:
            raise BackendError(f"PDF read error: {e}") from e

        metadata = {
            KEY_RESULT: encode_value(result),
            KEY_DATE: datetime.now().strftime(TIMESTAMP_FORMAT),
            KEY_VERSION: EMBED_VERSION,
        }
        if instruction:
            metadata[KEY_INSTRUCTION] = encode_value(instruction)
        writer.add_metadata(metadata)

        temp_path = target.with_name(target.name + ".tmp")
        try:
            with open(temp_path, "wb") as f:
                writer.write(f)
            os.replace(temp_path, target)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise BackendError(f"PDF save error: {e}") from e

    async def write(self, path: str, result: str, instruction: str = "") -> None:
        await asyncio.to_thread(self._write_sync, path, result, instruction)
        logger.debug(f"Embedded analysis result into {path}")
