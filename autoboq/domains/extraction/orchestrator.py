"""
Extraction Orchestrator - Sequential multi-module BOQ extraction.

Drives one model call per catalog module, strictly in order:

    cooling (all but first) -> activate -> call with retry -> parse
    -> re-base ids -> completion event

Per-module failures (exhausted retries, bad JSON) degrade to an empty
completion and the run continues. Only errors outside the module loop
(artifact encoding, catalog misconfiguration) are fatal.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
)

from autoboq.adapters.gemini.models import GenerationRequest, ModelCapabilities
from autoboq.adapters.gemini.simulation import SimulatedGeminiClient
from autoboq.config.errors import ExtractionCancelled, ResponseShapeError
from autoboq.domains.boq.models import BOQItem, LogEntry, LogKind

from .catalog import MODULES, validate_catalog
from .encoder import encode_sources
from .models import AnalysisModule, ModuleOutcome, ModuleStatus, RunSummary, SourceFile
from .parsing import parse_module_response, rebase_items
from .prompts import build_module_prompt
from .retry import FailureKind, RetryPolicy

if TYPE_CHECKING:
    from autoboq.adapters.gemini.models import GeminiResponse
    from autoboq.config import Settings

    from .cancellation import CancellationToken, Sleep
    from .contracts import CompletionCallback, GenerativeClient, LogCallback

logger = logging.getLogger(__name__)

__all__ = ["ExtractionOrchestrator"]

Emit = Callable[[LogKind, str], None]

_LOG_LEVELS = {
    LogKind.THOUGHT: logging.DEBUG,
    LogKind.PROCESS: logging.INFO,
    LogKind.SUCCESS: logging.INFO,
    LogKind.ERROR: logging.WARNING,
}


class _ModuleRun:
    """Mutable per-module bookkeeping."""

    def __init__(self, module: AnalysisModule) -> None:
        self.module = module
        self.status = ModuleStatus.PENDING
        self.attempts = 0
        self.error: str | None = None

    def transition(self, status: ModuleStatus) -> None:
        logger.debug("Module %d: %s -> %s", self.module.id, self.status.value, status.value)
        self.status = status

    def outcome(self, item_count: int) -> ModuleOutcome:
        return ModuleOutcome(
            module_id=self.module.id,
            status=self.status,
            item_count=item_count,
            attempts=self.attempts,
            error=self.error,
        )


class ExtractionOrchestrator:
    """
    Sequential extraction pipeline over the module catalog.

    Example:
        >>> orchestrator = ExtractionOrchestrator(GeminiClient(api_key="..."))
        >>> store = BOQStore()
        >>> summary = await orchestrator.run(sources, logs.append, store.add_module_result)
    """

    def __init__(
        self,
        client: GenerativeClient,
        model: str = "gemini-3-pro-preview",
        catalog: Sequence[AnalysisModule] = MODULES,
        retry_policy: RetryPolicy | None = None,
        cooling_seconds: float = 4.0,
        simulation: bool | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            client: Model client (live or simulated)
            model: Default model id
            catalog: Ordered extraction phases
            retry_policy: Attempt budget and backoff
            cooling_seconds: Fixed pause before every module but the first
            simulation: Announce offline mode; inferred from the client if None
            sleep: Replacement for all waits (tests inject a recorder)
        """
        self._client = client
        self.model = model
        self.catalog = tuple(catalog)
        self.retry_policy = retry_policy or RetryPolicy()
        self.cooling_seconds = cooling_seconds
        self.simulation = (
            isinstance(client, SimulatedGeminiClient) if simulation is None else simulation
        )
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        client: GenerativeClient,
        settings: Settings,
        model: str | None = None,
    ) -> "ExtractionOrchestrator":
        """
        Build an orchestrator with pacing taken from settings.

        The simulated client paces itself per module, so cooling is zero there.
        """
        simulated = isinstance(client, SimulatedGeminiClient)
        return cls(
            client,
            model=model or settings.gemini_model,
            retry_policy=RetryPolicy(
                max_attempts=settings.max_attempts,
                rate_limit_base_seconds=settings.rate_limit_base_seconds,
                transient_retry_seconds=settings.transient_retry_seconds,
            ),
            cooling_seconds=0.0 if simulated else settings.cooling_seconds,
        )

    async def run(
        self,
        sources: Sequence[SourceFile],
        on_log: LogCallback,
        on_module_complete: CompletionCallback,
        model: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> RunSummary:
        """
        Run the sequential protocol over every module.

        Args:
            sources: Drawings to analyze
            on_log: Receives progress log entries in emission order
            on_module_complete: Receives (module id, items) once per module
            model: Model id override for this run
            cancel_token: Optional stop signal

        Returns:
            RunSummary (``cancelled`` set if the token fired)

        Raises:
            EncodingError: A source could not be read (nothing was called)
            ExtractionError: Catalog misconfiguration
        """
        model = model or self.model
        summary = RunSummary(model=model, simulation=self.simulation)

        def emit(kind: LogKind, message: str) -> None:
            logger.log(_LOG_LEVELS[kind], "[%s] %s", kind.value, message)
            on_log(LogEntry(kind=kind, message=message))

        try:
            if self.simulation:
                emit(LogKind.PROCESS, "SIMULATION MODE: Processing modules sequentially...")
            else:
                emit(
                    LogKind.PROCESS,
                    f"INITIALIZING DYNAMIC INTELLIGENCE PROTOCOL (Model: {model})...",
                )

            validate_catalog(self.catalog)
            artifacts = encode_sources(sources)
            capabilities = ModelCapabilities.for_model(model)

            cursor = 1
            for index, module in enumerate(self.catalog):
                state = _ModuleRun(module)
                if index > 0:
                    state.transition(ModuleStatus.COOLING)
                    emit(
                        LogKind.THOUGHT,
                        f"Cooling down for rate limits ({self.cooling_seconds:g}s)...",
                    )
                    await self._wait(self.cooling_seconds, cancel_token)

                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()

                emit(LogKind.PROCESS, f">>> [SEQUENTIAL PROTOCOL] ACTIVATING MODULE: {module.title}")

                request = GenerationRequest(
                    model=model,
                    prompt=build_module_prompt(module, cursor),
                    artifacts=artifacts,
                    reasoning_budget=capabilities.reasoning_budget,
                    search_tool=capabilities.search_tool,
                    metadata={"module_id": module.id, "category": module.localized_title},
                )
                items, interrupted = await self._run_module(state, request, cursor, emit, cancel_token)

                cursor += len(items)
                summary.outcomes.append(state.outcome(len(items)))
                summary.total_items += len(items)
                summary.next_id = cursor
                on_module_complete(module.id, items)

                if interrupted:
                    raise ExtractionCancelled()

            emit(LogKind.SUCCESS, "PROTOCOL COMPLETE: All modules processed successfully.")

        except ExtractionCancelled:
            summary.cancelled = True
            emit(LogKind.PROCESS, "PROTOCOL CANCELLED: Remaining modules were not processed.")
        except Exception as e:
            logger.exception("Extraction run failed")
            emit(LogKind.ERROR, f"Critical System Failure: {e}")
            raise
        finally:
            summary.finished_at = datetime.now()

        return summary

    async def _run_module(
        self,
        state: _ModuleRun,
        request: GenerationRequest,
        cursor: int,
        emit: Emit,
        cancel_token: CancellationToken | None,
    ) -> tuple[list[BOQItem], bool]:
        """
        Call, parse and re-base one module.

        Returns:
            (items, interrupted) where interrupted means the token fired
            while this module was in flight
        """
        module = state.module
        try:
            response = await self._call_with_retry(state, request, emit, cancel_token)
        except ExtractionCancelled:
            state.error = "cancelled"
            state.transition(ModuleStatus.FAILED)
            return [], True
        except Exception as e:
            logger.error("Module %s failed after %d attempts: %s", module.title, state.attempts, e)
            state.error = str(e)
            state.transition(ModuleStatus.FAILED)
            emit(
                LogKind.ERROR,
                f"Failed to process {module.title} after multiple attempts. Skipping...",
            )
            return [], False

        if not response.text.strip():
            state.transition(ModuleStatus.SUCCEEDED)
            emit(LogKind.THOUGHT, f"No items found relevant to {module.title}.")
            return [], False

        try:
            items = parse_module_response(response.text)
        except ResponseShapeError as e:
            logger.warning("Unparseable response for %s: %s", module.title, e.details)
            state.error = e.message
            state.transition(ModuleStatus.FAILED)
            emit(LogKind.ERROR, f"Failed to parse AI response for {module.title}.")
            return [], False

        state.transition(ModuleStatus.SUCCEEDED)
        if not items:
            emit(LogKind.THOUGHT, f"No items found relevant to {module.title}.")
            return [], False

        items = rebase_items(items, cursor, module.localized_title)
        emit(
            LogKind.SUCCESS,
            f"Analysis Complete for {module.title}: Extracted {len(items)} items.",
        )
        return items, False

    async def _call_with_retry(
        self,
        state: _ModuleRun,
        request: GenerationRequest,
        emit: Emit,
        cancel_token: CancellationToken | None,
    ) -> GeminiResponse:
        """One model call under the retry policy; re-raises the last error."""
        policy = self.retry_policy

        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
            state.transition(ModuleStatus.RETRYING)
            if policy.classify(error) == FailureKind.RATE_LIMIT:
                emit(LogKind.ERROR, f"Rate limit hit (429). Retrying in {wait:g}s...")
            else:
                logger.warning("Attempt %d failed: %s", retry_state.attempt_number, error)
                emit(LogKind.ERROR, f"Request failed ({error}). Retrying in {wait:g}s...")

        async def sleep(seconds: float) -> None:
            await self._wait(seconds, cancel_token)

        retrying = AsyncRetrying(
            stop=policy.stop,
            wait=policy.wait,
            retry=(
                retry_if_exception_type(Exception)
                & retry_if_not_exception_type(ExtractionCancelled)
            ),
            before_sleep=before_sleep,
            sleep=sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                state.attempts = attempt.retry_state.attempt_number
                state.transition(ModuleStatus.CALLING)
                return await self._client.generate(request)

        raise AssertionError("unreachable")  # pragma: no cover

    async def _wait(self, seconds: float, cancel_token: CancellationToken | None) -> None:
        if cancel_token is not None:
            await cancel_token.sleep(seconds, self._sleep)
        elif self._sleep is not None:
            await self._sleep(seconds)
        else:
            await asyncio.sleep(seconds)
