"""
Chat Contracts - Interfaces for the chat domain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from autoboq.adapters.gemini.models import GeminiResponse


@runtime_checkable
class ChatTransport(Protocol):
    """A live conversation with the model."""

    async def send(self, message: str) -> GeminiResponse:
        """Send one user turn and return the model reply."""
        ...


@runtime_checkable
class ChatClient(Protocol):
    """Opens conversations. Implemented by the Gemini clients."""

    def start_chat(self, model: str, system_instruction: str | None = None) -> ChatTransport:
        """Open a fresh conversation with no history."""
        ...
