import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from pdfcheck.domain.events.analysis_events import LOG_CHANNEL, PROGRESS_CHANNEL
from pdfcheck.domain.exceptions import BackendError
from pdfcheck.domain.interfaces.storage import GuidelineStore
from pdfcheck.domain.models.analysis import (
    AnalysisMode,
    AnalysisRequest,
    EmbeddedResult,
    GuidelineRequest,
    Guidelines,
    HistoryEntry,
)
from pdfcheck.core.result_parser import parse_individual_results
from pdfcheck.infrastructure.backend.cli_backend import CliAnalyzerBackend, clean_output, format_section
from pdfcheck.infrastructure.events.local_bus import LocalEventBus


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode
        self.stdin_data = None

    async def communicate(self, data=None):
        self.stdin_data = data
        return self._stdout, self._stderr


@pytest.fixture
def published():
    return []


@pytest.fixture
def bus(published):
    bus = LocalEventBus()

    async def listen():
        await bus.subscribe(LOG_CHANNEL, lambda p: published.append((LOG_CHANNEL, p)))
        await bus.subscribe(PROGRESS_CHANNEL, lambda p: published.append((PROGRESS_CHANNEL, p)))

    asyncio.run(listen())
    return bus


@pytest.fixture
def backend(bus, mock_embedded_store, mock_history_store):
    return CliAnalyzerBackend(
        event_bus=bus,
        embedded_store=mock_embedded_store,
        history_store=mock_history_store,
        command="gemini",
        model="gemini-2.5-pro",
    )


def _patch_exec(mocker, handler):
    calls = []

    async def fake_exec(*args, **kwargs):
        calls.append((args, kwargs))
        return handler(args)

    mocker.patch("asyncio.create_subprocess_exec", side_effect=fake_exec)
    return calls


def test_clean_output_drops_noise_lines():
    raw = "Loaded cached credentials.\nResult line\nHook registry initialized with 0 hooks\nMore"
    assert clean_output(raw) == "Result line\nMore"


def test_format_section_matches_wire_format():
    assert format_section("a.pdf", "OK") == "\n## 📄 a.pdf\n---\nOK\n\n"


def test_individual_analysis_builds_sections(backend, mocker, published, mock_embedded_store, mock_history_store):
    def handler(args):
        name = args[-1].rsplit("/", 1)[-1]
        if name == "b.pdf":
            return FakeProcess(stderr=b"quota exceeded", returncode=1)
        return FakeProcess(stdout=f"Loaded cached credentials.\nReview of {name}".encode())

    calls = _patch_exec(mocker, handler)
    request = AnalysisRequest(["/docs/a.pdf", "/docs/b.pdf"], AnalysisMode.INDIVIDUAL, "check dates")

    response = asyncio.run(backend.analyze_pdfs(request))

    assert parse_individual_results(response) == {
        "a.pdf": "Review of a.pdf",
        "b.pdf": "⚠ Error: exit code 1: quota exceeded",
    }
    args, kwargs = calls[0]
    assert args[:5] == ("gemini", "-m", "gemini-2.5-pro", "-o", "text")
    assert kwargs["cwd"] == "/docs"

    progress = [p for channel, p in published if channel == PROGRESS_CHANNEL]
    assert sorted((p["file_name"], p["success"]) for p in progress) == [("a.pdf", True), ("b.pdf", False)]
    assert all(p["completed"] for p in progress)
    assert any(p["level"] == "success" for channel, p in published if channel == LOG_CHANNEL)

    mock_embedded_store.write.assert_awaited_once_with("/docs/a.pdf", "Review of a.pdf", "check dates")
    mock_history_store.save_entry.assert_awaited_once()


def test_prompt_is_sent_on_stdin(backend, mocker):
    processes = []

    def handler(args):
        processes.append(FakeProcess(stdout=b"done"))
        return processes[-1]

    _patch_exec(mocker, handler)
    asyncio.run(backend.analyze_pdfs(AnalysisRequest(["/docs/見積書.pdf"], AnalysisMode.INDIVIDUAL, "")))

    prompt = processes[0].stdin_data.decode("utf-8")
    assert "見積書.pdf" in prompt


def test_all_files_failing_raises(backend, mocker, mock_embedded_store):
    _patch_exec(mocker, lambda args: FakeProcess(stderr=b"auth required", returncode=41))

    with pytest.raises(BackendError) as exc_info:
        asyncio.run(backend.analyze_pdfs(AnalysisRequest(["/docs/a.pdf"], AnalysisMode.INDIVIDUAL)))

    assert str(exc_info.value) == "exit code 41: auth required"
    mock_embedded_store.write.assert_not_awaited()


def test_persistence_failures_do_not_fail_the_run(backend, mocker, mock_embedded_store):
    mock_embedded_store.write.side_effect = BackendError("PDF save error: read-only")
    _patch_exec(mocker, lambda args: FakeProcess(stdout=b"ok"))

    response = asyncio.run(backend.analyze_pdfs(AnalysisRequest(["/docs/a.pdf"], AnalysisMode.INDIVIDUAL)))

    assert parse_individual_results(response) == {"a.pdf": "ok"}


def test_compare_issues_one_call(backend, mocker, mock_history_store):
    calls = _patch_exec(mocker, lambda args: FakeProcess(stdout=b"Totals match across files."))

    response = asyncio.run(
        backend.analyze_pdfs(AnalysisRequest(["/docs/a.pdf", "/docs/b.pdf"], AnalysisMode.COMPARE))
    )

    assert response == "Totals match across files."
    assert len(calls) == 1
    assert calls[0][0][-2:] == ("/docs/a.pdf", "/docs/b.pdf")
    saved = [c.args[0] for c in mock_history_store.save_entry.await_args_list]
    assert [e.document_type for e in saved] == ["comparative analysis", "comparative analysis"]


def test_compare_failure_propagates(backend, mocker):
    _patch_exec(mocker, lambda args: FakeProcess(stderr=b"boom", returncode=2))
    with pytest.raises(BackendError, match="exit code 2: boom"):
        asyncio.run(backend.analyze_pdfs(AnalysisRequest(["/docs/a.pdf", "/docs/b.pdf"], AnalysisMode.COMPARE)))


def test_missing_executable(backend, mocker):
    mocker.patch("asyncio.create_subprocess_exec", side_effect=FileNotFoundError("gemini"))
    with pytest.raises(BackendError, match="Failed to start analyzer"):
        asyncio.run(backend.analyze_pdfs(AnalysisRequest(["/docs/a.pdf"], AnalysisMode.COMPARE)))


def test_empty_request_is_rejected(backend):
    with pytest.raises(BackendError):
        asyncio.run(backend.analyze_pdfs(AnalysisRequest([], AnalysisMode.INDIVIDUAL)))


def test_guidelines_collect_embedded_issues(backend, mocker, mock_embedded_store):
    async def read(path):
        if path.endswith("契約書.pdf"):
            return EmbeddedResult("概要\n⚠ 工期が不整合\n注意: 印紙", "2024-05-01 09:00:00", "工期を確認")
        return None

    mock_embedded_store.read.side_effect = read
    processes = []

    def handler(args):
        processes.append(FakeProcess(stdout=b"# Checklist"))
        return processes[-1]

    calls = _patch_exec(mocker, handler)

    document = asyncio.run(backend.generate_guidelines(
        GuidelineRequest(["/docs/契約書.pdf", "/docs/other.pdf"], "/nonexistent", "")
    ))

    assert document == "# Checklist"
    prompt = processes[0].stdin_data.decode("utf-8")
    assert "[契約書.pdf] ⚠ 工期が不整合" in prompt
    assert "[契約書.pdf] 注意: 印紙" in prompt
    assert "工期を確認" in prompt
    assert "contract" in prompt
    assert calls[0][1]["cwd"] is None


def test_guidelines_without_embedded_data_fail(backend, mocker):
    calls = _patch_exec(mocker, lambda args: FakeProcess(stdout=b"unused"))
    with pytest.raises(BackendError):
        asyncio.run(backend.generate_guidelines(GuidelineRequest(["/docs/a.pdf"], "/docs")))
    assert calls == []


def test_timeout_kills_the_analyzer(bus, mock_embedded_store, mocker):
    class SlowProcess(FakeProcess):
        killed = False

        async def communicate(self, data=None):
            await asyncio.sleep(10)

        def kill(self):
            self.killed = True

        async def wait(self):
            return -9

    proc = SlowProcess()
    _patch_exec(mocker, lambda args: proc)
    backend = CliAnalyzerBackend(bus, mock_embedded_store, timeout_seconds=0.01)

    with pytest.raises(BackendError, match="timed out"):
        asyncio.run(backend.analyze_pdfs(AnalysisRequest(["/docs/a.pdf"], AnalysisMode.COMPARE)))
    assert proc.killed is True


@pytest.fixture
def mock_guideline_store():
    mock = MagicMock(spec=GuidelineStore)
    mock.load = AsyncMock(return_value=None)
    mock.save = AsyncMock()
    mock.save_raw = AsyncMock()
    return mock


@pytest.fixture
def guided_backend(bus, mock_embedded_store, mock_history_store, mock_guideline_store):
    return CliAnalyzerBackend(
        event_bus=bus,
        embedded_store=mock_embedded_store,
        history_store=mock_history_store,
        guideline_store=mock_guideline_store,
    )


def _stdin_of(mocker, stdout=b"done"):
    processes = []

    def handler(args):
        processes.append(FakeProcess(stdout=stdout))
        return processes[-1]

    calls = _patch_exec(mocker, handler)
    return processes, calls


def test_prompt_carries_project_history_and_guidelines(guided_backend, mocker, mock_history_store,
                                                       mock_guideline_store):
    mock_history_store.load_folder.return_value = [
        HistoryEntry("/site/estimate.pdf", "estimate.pdf", "2024-05-01 09:00:00", "line 1\nline 2\nline 3\nline 4",
                     "estimate", ["⚠ tax rate missing"]),
    ]
    mock_guideline_store.load.return_value = Guidelines(
        common=[f"common {i}" for i in range(1, 8)],
        categories={"contract": ["check the seal"], "invoice": ["check the due date"]},
    )
    processes, _ = _stdin_of(mocker)

    asyncio.run(guided_backend.analyze_pdfs(AnalysisRequest(["/site/contract.pdf"], AnalysisMode.INDIVIDUAL)))

    mock_history_store.load_folder.assert_awaited_once_with("/site")
    mock_guideline_store.load.assert_awaited_once_with("/site")
    prompt = processes[0].stdin_data.decode("utf-8")
    assert "## Relevant guidelines\n[Common]\ncommon 1" in prompt
    assert "common 5" in prompt and "common 6" not in prompt
    assert "[contract]\ncheck the seal" in prompt
    assert "check the due date" not in prompt
    assert "## Past analysis history (reference)" in prompt
    assert "### estimate.pdf (2024-05-01 09:00:00)" in prompt
    assert "  - ⚠ tax rate missing" in prompt
    assert "- Summary: line 1 line 2 line 3\n" in prompt
    assert prompt.index("## Relevant guidelines") < prompt.index("## Output format") < prompt.index("## Past analysis")


def test_compare_prompt_uses_types_of_every_file(guided_backend, mocker, mock_guideline_store):
    mock_guideline_store.load.return_value = Guidelines(
        categories={"contract": ["seal"], "invoice": ["due date"], "estimate": ["tax"]},
    )
    processes, _ = _stdin_of(mocker)

    asyncio.run(guided_backend.analyze_pdfs(
        AnalysisRequest(["/site/contract.pdf", "/site/invoice.pdf"], AnalysisMode.COMPARE)
    ))

    prompt = processes[0].stdin_data.decode("utf-8")
    assert "[contract]\nseal\n[invoice]\ndue date" in prompt
    assert "tax" not in prompt.split("## Relevant guidelines", 1)[1].split("## Output format", 1)[0]
    assert "## Past analysis history" not in prompt


def test_context_failures_do_not_block_analysis(guided_backend, mocker, mock_history_store, mock_guideline_store):
    mock_history_store.load_folder.side_effect = OSError("disk gone")
    mock_guideline_store.load.side_effect = OSError("disk gone")
    processes, _ = _stdin_of(mocker, stdout=b"ok")

    response = asyncio.run(guided_backend.analyze_pdfs(AnalysisRequest(["/site/a.pdf"], AnalysisMode.INDIVIDUAL)))

    assert parse_individual_results(response) == {"a.pdf": "ok"}
    assert "## Relevant guidelines" not in processes[0].stdin_data.decode("utf-8")


def test_json_guidelines_are_saved_and_rendered(guided_backend, mocker, published, mock_embedded_store,
                                                mock_guideline_store):
    mock_embedded_store.read.return_value = EmbeddedResult("⚠ amounts differ", "2024-05-01 09:00:00")
    mock_guideline_store.load.return_value = Guidelines(common=["old item"])
    output = (
        "Here you go:\n```json\n"
        '{"common": ["compare totals"], "categories": {"contract": ["check seals", "check dates"]}}\n'
        "```"
    )
    processes, _ = _stdin_of(mocker, stdout=output.encode("utf-8"))

    document = asyncio.run(guided_backend.generate_guidelines(GuidelineRequest(["/site/contract.pdf"], "/site")))

    assert document == (
        "## Guidelines\n\n### Common\n- compare totals\n\n### contract\n- check seals\n- check dates\n"
    )
    mock_guideline_store.save.assert_awaited_once_with(
        "/site", Guidelines(common=["compare totals"], categories={"contract": ["check seals", "check dates"]})
    )
    mock_guideline_store.save_raw.assert_not_awaited()
    prompt = processes[0].stdin_data.decode("utf-8")
    assert '"old item"' in prompt
    assert ("✓ Guidelines generated (3 items)", "success") in [
        (p["message"], p["level"]) for channel, p in published if channel == LOG_CHANNEL
    ]


def test_unparsable_guidelines_are_kept_raw(guided_backend, mocker, mock_embedded_store, mock_guideline_store):
    mock_embedded_store.read.return_value = EmbeddedResult("⚠ amounts differ", "2024-05-01 09:00:00")
    processes, _ = _stdin_of(mocker, stdout=b"# Checklist\n- Confirm seals")

    document = asyncio.run(guided_backend.generate_guidelines(GuidelineRequest(["/site/a.pdf"], "/site")))

    assert document == "# Checklist\n- Confirm seals"
    mock_guideline_store.save_raw.assert_awaited_once_with("/site", "# Checklist\n- Confirm seals")
    mock_guideline_store.save.assert_not_awaited()
    assert "(none - new)" in processes[0].stdin_data.decode("utf-8")


def test_guideline_save_failure_still_returns_document(guided_backend, mocker, mock_embedded_store,
                                                      mock_guideline_store):
    mock_embedded_store.read.return_value = EmbeddedResult("⚠ amounts differ", "2024-05-01 09:00:00")
    mock_guideline_store.save.side_effect = FileNotFoundError("Guideline folder does not exist: /gone")
    _stdin_of(mocker, stdout=b'{"common": ["a"], "categories": {}}')

    document = asyncio.run(guided_backend.generate_guidelines(GuidelineRequest(["/gone/a.pdf"], "/gone")))

    assert document == "## Guidelines\n\n### Common\n- a\n"
