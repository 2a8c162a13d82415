"""
Tests for the sequential extraction orchestrator.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from autoboq.adapters.gemini.models import GeminiResponse
from autoboq.adapters.gemini.simulation import SimulatedGeminiClient
from autoboq.config import Settings
from autoboq.config.errors import EncodingError, ExtractionError, LLMError, RateLimitError
from autoboq.domains.boq import BOQItem, BOQStore, LogEntry, LogKind

from .cancellation import CancellationToken
from .catalog import MODULES
from .models import AnalysisModule, ModuleStatus, SourceFile
from .orchestrator import ExtractionOrchestrator
from .retry import RetryPolicy

TWO_MODULES = (
    AnalysisModule(id=1, title="Preliminary Works", localized_title="الأعمال التحضيرية"),
    AnalysisModule(id=2, title="Substructure", localized_title="أعمال الحفر"),
)


def _response(count: int) -> GeminiResponse:
    """Model answer with ``count`` items, ids restarting at 1."""
    items = [
        {"id": n, "description": f"Item {n}", "unit": "m3", "count": 1, "total": float(n)}
        for n in range(1, count + 1)
    ]
    return GeminiResponse(text=json.dumps({"items": items}), model="gemini-3-pro-preview")


class Recorder:
    """Collects logs, completions and sleeps for one run."""

    def __init__(self) -> None:
        self.logs: list[LogEntry] = []
        self.completions: list[tuple[int, list[BOQItem]]] = []
        self.sleeps: list[float] = []

    def on_log(self, entry: LogEntry) -> None:
        self.logs.append(entry)

    def on_module_complete(self, module_id: int, items: list[BOQItem]) -> None:
        self.completions.append((module_id, items))

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def messages(self, kind: LogKind) -> list[str]:
        return [entry.message for entry in self.logs if entry.kind == kind]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def sources() -> list[SourceFile]:
    return [SourceFile(content=b"%PDF-1.4 drawing", name="S-01.pdf")]


@pytest.fixture
def mock_client() -> AsyncMock:
    """Live-mode client whose answers are scripted per test."""
    client = AsyncMock()
    client.generate.return_value = _response(1)
    return client


def _orchestrator(client, recorder: Recorder, **kwargs) -> ExtractionOrchestrator:
    return ExtractionOrchestrator(client, sleep=recorder.sleep, simulation=False, **kwargs)


# --- Happy Path ---


async def test_run_emits_one_completion_per_module_in_order(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test every module completes once, ascending, then the run finishes."""
    orchestrator = _orchestrator(mock_client, recorder)
    summary = await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert [module_id for module_id, _ in recorder.completions] == [1, 2, 3, 4, 5, 6]
    assert recorder.logs[0].message == (
        "INITIALIZING DYNAMIC INTELLIGENCE PROTOCOL (Model: gemini-3-pro-preview)..."
    )
    assert recorder.logs[-1].kind == LogKind.SUCCESS
    assert recorder.logs[-1].message == "PROTOCOL COMPLETE: All modules processed successfully."
    assert mock_client.generate.await_count == len(MODULES)
    assert not summary.cancelled
    assert summary.total_items == 6
    assert summary.finished_at is not None


async def test_run_assigns_contiguous_ids(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test ids are re-based across modules although the model restarts at 1."""
    mock_client.generate.side_effect = [
        _response(2),
        _response(0),
        _response(3),
        _response(1),
        _response(0),
        _response(2),
    ]
    store = BOQStore()
    orchestrator = _orchestrator(mock_client, recorder)
    summary = await orchestrator.run(sources, recorder.on_log, store.add_module_result)

    assert [item.id for item in store.items] == list(range(1, 9))
    assert summary.next_id == 9
    assert store.items[0].category == MODULES[0].localized_title
    assert store.items[-1].category == MODULES[5].localized_title


async def test_run_passes_start_id_and_capabilities(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test each request carries the running start id and model flags."""
    mock_client.generate.side_effect = [_response(2), _response(1)]
    orchestrator = _orchestrator(mock_client, recorder, catalog=TWO_MODULES)
    await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    first, second = (call.args[0] for call in mock_client.generate.await_args_list)
    assert "**Start Item IDs** at: 1." in first.prompt
    assert "**Start Item IDs** at: 3." in second.prompt
    assert first.reasoning_budget == 4096
    assert first.search_tool is True
    assert len(first.artifacts) == 1
    assert first.metadata["module_id"] == 1


async def test_run_model_override_changes_capabilities(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test a per-run model id drives request flags only."""
    orchestrator = _orchestrator(mock_client, recorder, catalog=TWO_MODULES)
    summary = await orchestrator.run(
        sources, recorder.on_log, recorder.on_module_complete, model="gemini-flash-lite-latest"
    )

    request = mock_client.generate.await_args.args[0]
    assert request.model == "gemini-flash-lite-latest"
    assert request.reasoning_budget is None
    assert request.search_tool is False
    assert summary.model == "gemini-flash-lite-latest"
    assert len(recorder.completions) == 2


async def test_cooling_between_modules(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test a cooling pause precedes every module but the first."""
    orchestrator = _orchestrator(mock_client, recorder, cooling_seconds=4.0)
    await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    cooling = [m for m in recorder.messages(LogKind.THOUGHT) if m.startswith("Cooling down")]
    assert len(cooling) == len(MODULES) - 1
    assert cooling[0] == "Cooling down for rate limits (4s)..."
    assert recorder.sleeps == [4.0] * (len(MODULES) - 1)

    activations = [m for m in recorder.messages(LogKind.PROCESS) if "ACTIVATING MODULE" in m]
    assert activations[0] == ">>> [SEQUENTIAL PROTOCOL] ACTIVATING MODULE: Preliminary Works"


# --- Retry ---


async def test_rate_limit_exhausted_skips_module(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test three rate-limited attempts yield an empty completion and the run goes on."""
    mock_client.generate.side_effect = [
        _response(1),
        RateLimitError("429"),
        RateLimitError("429"),
        RateLimitError("429"),
    ]
    orchestrator = _orchestrator(mock_client, recorder, catalog=TWO_MODULES, cooling_seconds=4.0)
    summary = await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert recorder.completions[1] == (2, [])
    assert recorder.sleeps == [4.0, 8.0, 16.0]
    assert mock_client.generate.await_count == 4

    errors = recorder.messages(LogKind.ERROR)
    assert errors == [
        "Rate limit hit (429). Retrying in 8s...",
        "Rate limit hit (429). Retrying in 16s...",
        "Failed to process Substructure after multiple attempts. Skipping...",
    ]
    assert summary.skipped_modules == [2]
    assert summary.outcomes[1].attempts == 3
    assert recorder.logs[-1].kind == LogKind.SUCCESS


class QuotaError(Exception):
    """SDK-style error that only carries the status in its message."""


async def test_rate_limit_detected_from_error_message(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test an unclassified 429 error still gets exponential backoff."""
    mock_client.generate.side_effect = [
        _response(1),
        QuotaError("429 RESOURCE_EXHAUSTED"),
        QuotaError("429 RESOURCE_EXHAUSTED"),
        QuotaError("429 RESOURCE_EXHAUSTED"),
    ]
    orchestrator = _orchestrator(mock_client, recorder, catalog=TWO_MODULES, cooling_seconds=4.0)
    summary = await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert recorder.sleeps == [4.0, 8.0, 16.0]
    assert recorder.messages(LogKind.ERROR)[:2] == [
        "Rate limit hit (429). Retrying in 8s...",
        "Rate limit hit (429). Retrying in 16s...",
    ]
    assert summary.skipped_modules == [2]


async def test_single_attempt_budget_does_not_retry(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test a one-attempt policy skips the module after the first failure."""
    mock_client.generate.side_effect = [RateLimitError("429")]
    orchestrator = _orchestrator(
        mock_client,
        recorder,
        catalog=TWO_MODULES[:1],
        retry_policy=RetryPolicy(max_attempts=1),
    )
    summary = await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert mock_client.generate.await_count == 1
    assert recorder.sleeps == []
    assert summary.skipped_modules == [1]


async def test_two_module_run_with_failed_second_module(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test a three-item first module and a rate-limited second module."""
    catalog = (
        AnalysisModule(id=1, title="A", localized_title="A"),
        AnalysisModule(id=2, title="B", localized_title="B"),
    )
    mock_client.generate.side_effect = [_response(3)] + [RateLimitError("429")] * 3
    store = BOQStore()
    orchestrator = _orchestrator(mock_client, recorder, catalog=catalog)
    await orchestrator.run(sources, recorder.on_log, store.add_module_result)

    assert store.completed_modules == [1, 2]
    assert [item.id for item in store.items] == [1, 2, 3]
    assert recorder.logs[-1].kind == LogKind.SUCCESS


async def test_transient_failure_retries_with_fixed_delay(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test a non-rate-limit failure retries after the short fixed delay."""
    mock_client.generate.side_effect = [LLMError("connection reset"), _response(2)]
    orchestrator = _orchestrator(
        mock_client, recorder, catalog=TWO_MODULES[:1], retry_policy=RetryPolicy()
    )
    summary = await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert recorder.sleeps == [2.0]
    assert len(recorder.completions[0][1]) == 2
    assert summary.outcomes[0].status == ModuleStatus.SUCCEEDED
    assert summary.outcomes[0].attempts == 2
    assert recorder.messages(LogKind.ERROR)[0].startswith("Request failed (")


# --- Per-module degradation ---


async def test_unparseable_response_skips_module(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test bad JSON yields an empty completion without retrying."""
    mock_client.generate.side_effect = [
        GeminiResponse(text="Sorry, I cannot help.", model="m"),
        _response(1),
    ]
    orchestrator = _orchestrator(mock_client, recorder, catalog=TWO_MODULES)
    await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert recorder.completions[0] == (1, [])
    assert [item.id for item in recorder.completions[1][1]] == [1]
    assert "Failed to parse AI response for Preliminary Works." in recorder.messages(LogKind.ERROR)
    assert mock_client.generate.await_count == 2


async def test_empty_items_and_empty_text(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test empty answers complete the module with no items."""
    mock_client.generate.side_effect = [
        _response(0),
        GeminiResponse(text="", model="m"),
    ]
    orchestrator = _orchestrator(mock_client, recorder, catalog=TWO_MODULES)
    summary = await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)

    assert recorder.completions == [(1, []), (2, [])]
    thoughts = recorder.messages(LogKind.THOUGHT)
    assert "No items found relevant to Preliminary Works." in thoughts
    assert "No items found relevant to Substructure." in thoughts
    assert summary.skipped_modules == []


# --- Fatal errors ---


async def test_encoding_failure_is_fatal(
    mock_client: AsyncMock, recorder: Recorder, tmp_path: Path
) -> None:
    """Test an unreadable source aborts before any model call."""
    orchestrator = _orchestrator(mock_client, recorder)

    with pytest.raises(EncodingError):
        await orchestrator.run(
            [SourceFile(path=tmp_path / "missing.pdf")],
            recorder.on_log,
            recorder.on_module_complete,
        )

    mock_client.generate.assert_not_awaited()
    assert recorder.completions == []
    assert recorder.logs[-1].kind == LogKind.ERROR
    assert recorder.logs[-1].message.startswith("Critical System Failure:")


async def test_misordered_catalog_is_fatal(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test catalog misconfiguration raises before any call."""
    orchestrator = _orchestrator(mock_client, recorder, catalog=tuple(reversed(TWO_MODULES)))

    with pytest.raises(ExtractionError):
        await orchestrator.run(sources, recorder.on_log, recorder.on_module_complete)
    mock_client.generate.assert_not_awaited()


# --- Cancellation ---


async def test_cancel_between_modules(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test cancelling stops the run at the next cooling wait."""
    token = CancellationToken()

    def on_module_complete(module_id: int, items: list[BOQItem]) -> None:
        recorder.on_module_complete(module_id, items)
        token.cancel()

    orchestrator = _orchestrator(mock_client, recorder)
    summary = await orchestrator.run(
        sources, recorder.on_log, on_module_complete, cancel_token=token
    )

    assert summary.cancelled
    assert [module_id for module_id, _ in recorder.completions] == [1]
    assert mock_client.generate.await_count == 1
    assert recorder.logs[-1].message.startswith("PROTOCOL CANCELLED")
    assert "PROTOCOL COMPLETE: All modules processed successfully." not in recorder.messages(
        LogKind.SUCCESS
    )


async def test_cancel_during_retry_wait(
    mock_client: AsyncMock, recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test a token fired while backing off ends the in-flight module empty."""
    token = CancellationToken()
    mock_client.generate.side_effect = RateLimitError("429")

    async def sleep(seconds: float) -> None:
        recorder.sleeps.append(seconds)
        token.cancel()

    orchestrator = ExtractionOrchestrator(
        mock_client, catalog=TWO_MODULES, sleep=sleep, simulation=False
    )
    summary = await orchestrator.run(
        sources, recorder.on_log, recorder.on_module_complete, cancel_token=token
    )

    assert summary.cancelled
    assert recorder.completions == [(1, [])]
    assert recorder.sleeps == [8.0]
    assert mock_client.generate.await_count == 1


# --- Simulation ---


async def test_simulation_run_uses_sample_data(
    recorder: Recorder, sources: list[SourceFile]
) -> None:
    """Test the offline client goes through the same loop and event shape."""
    client = SimulatedGeminiClient(delay_seconds=0, sleep=recorder.sleep)
    orchestrator = ExtractionOrchestrator(client, cooling_seconds=0, sleep=recorder.sleep)
    store = BOQStore()
    summary = await orchestrator.run(sources, recorder.on_log, store.add_module_result)

    assert summary.simulation
    assert recorder.logs[0].message == "SIMULATION MODE: Processing modules sequentially..."
    assert store.completed_modules == [1, 2, 3, 4, 5, 6]
    assert [item.id for item in store.items] == [1, 2, 3, 4, 5, 6]
    assert summary.total_items == 6
    assert recorder.logs[-1].kind == LogKind.SUCCESS


def test_from_settings_pacing() -> None:
    """Test pacing comes from settings and is zeroed for the offline client."""
    settings = Settings(
        gemini_api_key="test-key",
        cooling_seconds=1.0,
        max_attempts=5,
        rate_limit_base_seconds=2.0,
    )
    live = ExtractionOrchestrator.from_settings(AsyncMock(), settings, model="gemini-flash-latest")
    assert live.cooling_seconds == 1.0
    assert live.retry_policy.max_attempts == 5
    assert live.retry_policy.rate_limit_base_seconds == 2.0
    assert live.model == "gemini-flash-latest"
    assert not live.simulation

    offline = ExtractionOrchestrator.from_settings(SimulatedGeminiClient(), settings)
    assert offline.cooling_seconds == 0.0
    assert offline.simulation
    assert offline.model == settings.gemini_model
