"""Analysis backend that shells out to an analyzer CLI.

The analyzer is invoked as ``<command> -m <model> -o text <files...>`` with
the prompt on stdin. Progress and transcript lines are published on the
event bus while the run is in flight.
"""

import asyncio
import json
import logging
import shlex
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pdfcheck.domain.events.analysis_events import (
    LOG_CHANNEL,
    PROGRESS_CHANNEL,
    LogEvent,
    ProgressEvent,
)
from pdfcheck.domain.exceptions import BackendError
from pdfcheck.domain.interfaces.backend import AnalysisBackend
from pdfcheck.domain.interfaces.event_bus import EventBus
from pdfcheck.domain.interfaces.storage import EmbeddedResultStore, GuidelineStore, HistoryStore
from pdfcheck.domain.models.analysis import (
    AnalysisMode,
    AnalysisRequest,
    GuidelineRequest,
    Guidelines,
)
from pdfcheck.domain.models.common import (
    COMPARE_DOCUMENT_TYPE,
    LOG_LEVEL_ERROR,
    LOG_LEVEL_INFO,
    LOG_LEVEL_SUCCESS,
    LOG_LEVEL_WAVE,
    SECTION_MARKER,
    SECTION_SEPARATOR,
)
from pdfcheck.domain.models.file_record import display_name_for
from pdfcheck.infrastructure.backend.document_types import (
    GUIDELINE_MARKERS,
    detect_document_types,
    extract_issues,
)
from pdfcheck.infrastructure.backend.prompts import (
    build_compare_prompt,
    build_guideline_prompt,
    build_history_context,
    build_single_prompt,
)
from pdfcheck.infrastructure.storage.guideline_store import (
    parse_guidelines,
    relevant_guidelines,
    render_guidelines,
)
from pdfcheck.infrastructure.storage.history_store import create_history_entry

logger = logging.getLogger(__name__)

# Lines the analyzer CLI prints to stdout that are not part of the answer
NOISE_MARKERS = ("Loaded cached credentials", "Hook registry initialized")


def clean_output(output: str) -> str:
    return "\n".join(
        line for line in output.splitlines() if not any(marker in line for marker in NOISE_MARKERS)
    )


def format_section(file_name: str, content: str) -> str:
    """One individual-mode section in the wire format."""
    return f"\n{SECTION_MARKER}{file_name}\n{SECTION_SEPARATOR}\n{content}\n\n"


def _first_line(text: str) -> str:
    return text.splitlines()[0] if text else ""


class CliAnalyzerBackend(AnalysisBackend):
    """Runs the analyzer CLI once per file (individual) or once per run (compare)."""

    def __init__(
        self,
        event_bus: EventBus,
        embedded_store: EmbeddedResultStore,
        history_store: Optional[HistoryStore] = None,
        command: str = "gemini",
        model: str = "gemini-2.5-pro",
        timeout_seconds: Optional[float] = None,
        guideline_store: Optional[GuidelineStore] = None,
    ):
        self.event_bus = event_bus
        self.embedded_store = embedded_store
        self.history_store = history_store
        self.guideline_store = guideline_store
        self.command = command
        self.model = model
        self.timeout_seconds = timeout_seconds
        logger.info(f"CliAnalyzerBackend initialized: command='{command}', model='{model}'")

    async def _log(self, message: str, level: str = LOG_LEVEL_INFO) -> None:
        await self.event_bus.publish(LOG_CHANNEL, LogEvent(message, level).to_payload())

    async def _project_context(self, folder: str, document_types: Sequence[str]) -> Tuple[str, Optional[str]]:
        """Past history and the relevant guidelines of a project folder; failures are only logged."""
        history_context = ""
        if self.history_store is not None:
            try:
                history_context = build_history_context(await self.history_store.load_folder(folder))
            except Exception as e:
                logger.warning(f"Could not load history for {folder}: {e}")
        guidelines: Optional[str] = None
        if self.guideline_store is not None:
            try:
                guidelines = relevant_guidelines(await self.guideline_store.load(folder), document_types)
            except Exception as e:
                logger.warning(f"Could not load guidelines for {folder}: {e}")
        return history_context, guidelines

    async def _run_analyzer(self, prompt: str, files: Sequence[str], cwd: Optional[str] = None) -> str:
        args = [*shlex.split(self.command), "-m", self.model, "-o", "text", *files]
        logger.debug(f"Running analyzer: {args} (cwd={cwd})")
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            raise BackendError(f"Failed to start analyzer '{self.command}': {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(prompt.encode("utf-8")), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise BackendError("Analyzer timed out.") from e

        out_text = stdout.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            err_text = stderr.decode("utf-8", errors="replace")
            detail = f"exit code {proc.returncode}: {err_text}"
            if out_text.strip():
                detail = f"{detail}\n{out_text}"
            raise BackendError(detail.strip())
        return clean_output(out_text)

    async def _persist(self, path: str, result: str, instruction: str, document_type: Optional[str] = None,
                       summary: Optional[str] = None) -> None:
        """Records history and embeds the result into the PDF; failures are only logged."""
        if self.history_store is not None:
            entry = create_history_entry(display_name_for(path), path, result)
            if document_type is not None:
                entry.document_type = document_type
            if summary is not None:
                entry.summary = summary
            try:
                await self.history_store.save_entry(entry)
            except Exception as e:
                logger.warning(f"Could not save history for {path}: {e}")
        try:
            await self.embedded_store.write(path, result, instruction)
        except Exception as e:
            logger.warning(f"Could not embed result into {path}: {e}")

    # --- Analysis ---

    async def _analyze_one(self, path: str, instruction: str) -> Tuple[str, Optional[str], Optional[str]]:
        name = display_name_for(path)
        result: Optional[str] = None
        error: Optional[str] = None
        folder = str(Path(path).parent)
        history_context, guidelines = await self._project_context(folder, detect_document_types(name))
        try:
            result = await self._run_analyzer(
                build_single_prompt(name, instruction, history_context, guidelines), [path], cwd=folder
            )
            await self._persist(path, result, instruction)
        except BackendError as e:
            error = str(e)
            logger.error(f"Analysis of {name} failed: {error}")
        await self.event_bus.publish(
            PROGRESS_CHANNEL, ProgressEvent(name, completed=True, success=error is None).to_payload()
        )
        return name, result, error

    async def _analyze_individual(self, paths: List[str], instruction: str) -> str:
        await self._log(f"=== Individual analysis started ({len(paths)} file(s)) ===")
        if instruction:
            await self._log(f"Custom instruction: {_first_line(instruction)}")
        await self._log(f"Analyzing {len(paths)} file(s) with {self.model}...", LOG_LEVEL_WAVE)

        results = await asyncio.gather(*(self._analyze_one(path, instruction) for path in paths))

        successes = sum(1 for _, result, _ in results if result is not None)
        if successes == 0:
            message = "; ".join(f"{name}: {error}" for name, _, error in results)
            await self._log(f"Analysis error: {message}", LOG_LEVEL_ERROR)
            raise BackendError(results[0][2] if len(results) == 1 else message)

        output = "".join(
            format_section(name, result if result is not None else f"⚠ Error: {error}")
            for name, result, error in results
        )
        await self._log(f"✓ Analysis complete ({successes}/{len(paths)})", LOG_LEVEL_SUCCESS)
        return output

    async def _analyze_compare(self, paths: List[str], instruction: str) -> str:
        names = [display_name_for(path) for path in paths]
        await self._log(f"=== Compare analysis started ({len(paths)} file(s)) ===")
        for name in names:
            await self._log(f"  - {name}")
        if instruction:
            await self._log(f"Custom instruction: {_first_line(instruction)}")
        await self._log(f"Comparing with {self.model}...", LOG_LEVEL_WAVE)

        document_types: List[str] = []
        for name in names:
            for doc_type in detect_document_types(name):
                if doc_type not in document_types:
                    document_types.append(doc_type)
        folder = str(Path(paths[0]).parent)
        history_context, guidelines = await self._project_context(folder, document_types)
        try:
            result = await self._run_analyzer(
                build_compare_prompt(names, instruction, history_context, guidelines), paths, cwd=folder
            )
        except BackendError as e:
            await self._log(f"Compare error: {e}", LOG_LEVEL_ERROR)
            raise

        summary = f"[Compare] targets: {', '.join(names)}"
        for path in paths:
            await self._persist(path, result, instruction, document_type=COMPARE_DOCUMENT_TYPE, summary=summary)
        await self._log("✓ Compare complete", LOG_LEVEL_SUCCESS)
        return result

    async def analyze_pdfs(self, request: AnalysisRequest) -> str:
        paths = [str(path) for path in request.paths]
        if not paths:
            raise BackendError("No files specified.")
        if request.mode == AnalysisMode.COMPARE:
            return await self._analyze_compare(paths, request.custom_instruction)
        return await self._analyze_individual(paths, request.custom_instruction)

    # --- Guidelines ---

    async def generate_guidelines(self, request: GuidelineRequest) -> str:
        issues: List[str] = []
        instructions: List[str] = []
        document_types: List[str] = []
        if request.custom_instruction:
            instructions.append(request.custom_instruction)

        collected = 0
        for path in request.paths:
            data = await self.embedded_store.read(str(path))
            if data is None:
                continue
            collected += 1
            name = display_name_for(str(path))
            for line in extract_issues(data.result, GUIDELINE_MARKERS):
                formatted = f"[{name}] {line}"
                if formatted not in issues:
                    issues.append(formatted)
            if data.instruction and data.instruction not in instructions:
                instructions.append(data.instruction)
            for doc_type in detect_document_types(name):
                if doc_type not in document_types:
                    document_types.append(doc_type)

        if collected == 0:
            raise BackendError("The selected files carry no analysis data.")

        await self._log(f"=== Guideline generation ({collected} file(s)) ===")
        existing = None
        if self.guideline_store is not None:
            try:
                existing = await self.guideline_store.load(request.folder)
            except Exception as e:
                logger.warning(f"Could not load guidelines for {request.folder}: {e}")
        existing_json = json.dumps(existing.to_dict(), ensure_ascii=False, indent=2) if existing is not None else None

        await self._log(f"Summarizing with {self.model}...", LOG_LEVEL_WAVE)
        cwd = request.folder if Path(request.folder).is_dir() else None
        try:
            result = await self._run_analyzer(
                build_guideline_prompt(issues, instructions, document_types, existing_json), [], cwd=cwd
            )
        except BackendError as e:
            await self._log(f"Error: {e}", LOG_LEVEL_ERROR)
            raise

        guidelines = parse_guidelines(result)
        if guidelines is None:
            await self._log("Could not parse guidelines as JSON; saving raw output")
            await self._save_guidelines(request.folder, raw=result)
            return result
        await self._save_guidelines(request.folder, guidelines=guidelines)
        await self._log(f"✓ Guidelines generated ({guidelines.item_count} items)", LOG_LEVEL_SUCCESS)
        return render_guidelines(guidelines)

    async def _save_guidelines(self, folder: str, guidelines: Optional[Guidelines] = None,
                               raw: Optional[str] = None) -> None:
        """Stores generated guidelines (or unparsed output); failures are only logged."""
        if self.guideline_store is None:
            return
        try:
            if guidelines is not None:
                await self.guideline_store.save(folder, guidelines)
            elif raw is not None:
                await self.guideline_store.save_raw(folder, raw)
        except Exception as e:
            logger.warning(f"Could not save guidelines to {folder}: {e}")
