"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from autoboq.domains.boq.models import BOQItem, LogEntry

from .models import RunSummary, SourceFile

if TYPE_CHECKING:
    from autoboq.adapters.gemini.models import GeminiResponse, GenerationRequest

    from .cancellation import CancellationToken

LogCallback = Callable[[LogEntry], None]
CompletionCallback = Callable[[int, list[BOQItem]], None]


@runtime_checkable
class GenerativeClient(Protocol):
    """
    Contract for the model client used by the orchestrator.

    Implemented by GeminiClient and SimulatedGeminiClient.
    """

    async def generate(self, request: GenerationRequest) -> GeminiResponse:
        """
        Run one generation call.

        Raises:
            RateLimitError: Provider rate limit
            LLMError: Any other call failure
        """
        ...


@runtime_checkable
class Orchestrator(Protocol):
    """Contract for phased extraction runs."""

    async def run(
        self,
        sources: Sequence[SourceFile],
        on_log: LogCallback,
        on_module_complete: CompletionCallback,
        model: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> RunSummary:
        """
        Run every module in catalog order.

        Args:
            sources: Drawings to analyze
            on_log: Receives progress log entries in emission order
            on_module_complete: Receives (module id, items) once per module
            model: Model id override
            cancel_token: Optional stop signal

        Returns:
            Summary of the run
        """
        ...
