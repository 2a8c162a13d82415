"""
Cancellation Token - Cooperative stop signal for an extraction run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from autoboq.config.errors import ExtractionCancelled

__all__ = ["CancellationToken", "Sleep"]

Sleep = Callable[[float], Awaitable[None]]


class CancellationToken:
    """
    Signals an orchestration run to stop at its next check point.

    Example:
        >>> token = CancellationToken()
        >>> task = asyncio.create_task(orchestrator.run(..., cancel_token=token))
        >>> token.cancel()
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExtractionCancelled()

    async def sleep(self, seconds: float, sleeper: Sleep | None = None) -> None:
        """
        Wait ``seconds`` unless cancelled first.

        Args:
            seconds: Wait duration
            sleeper: Replacement sleep function; when given, the token is
                checked only before and after it

        Raises:
            ExtractionCancelled: Token fired before or during the wait
        """
        self.raise_if_cancelled()
        if sleeper is not None:
            await sleeper(seconds)
        elif seconds > 0:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        self.raise_if_cancelled()
