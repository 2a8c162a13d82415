"""
Retry Policy - Attempt budget and backoff for model calls.

State: attempt counter, classified failure, computed delay.

    rate limit  -> 2**attempt * base   (8s, 16s, 32s with base 4s)
    other error -> fixed short delay  (2s)

The policy plugs into tenacity as its stop and wait strategies.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from tenacity import RetryCallState

from autoboq.config.errors import is_rate_limited

__all__ = ["FailureKind", "RetryPolicy"]


class FailureKind(str, Enum):
    """Retry-relevant classification of a failed call."""

    RATE_LIMIT = "rate_limit"
    TRANSIENT = "transient"


class RetryPolicy(BaseModel):
    """Retry budget and delay computation for one module's call."""

    max_attempts: int = Field(default=3, ge=1)
    rate_limit_base_seconds: float = Field(default=4.0, ge=0.0)
    transient_retry_seconds: float = Field(default=2.0, ge=0.0)

    model_config = {"frozen": True}

    @staticmethod
    def classify(error: BaseException | None) -> FailureKind:
        """Rate limit by type, 429 status, or a marker in the error payload."""
        return FailureKind.RATE_LIMIT if is_rate_limited(error) else FailureKind.TRANSIENT

    def delay_for(self, attempt: int, kind: FailureKind) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if kind == FailureKind.RATE_LIMIT:
            return (2**attempt) * self.rate_limit_base_seconds
        return self.transient_retry_seconds

    def should_retry(self, attempt: int) -> bool:
        """True if another attempt remains after ``attempt`` failures."""
        return attempt < self.max_attempts

    def stop(self, retry_state: RetryCallState) -> bool:
        """tenacity stop strategy."""
        return not self.should_retry(retry_state.attempt_number)

    def wait(self, retry_state: RetryCallState) -> float:
        """tenacity wait strategy."""
        error = retry_state.outcome.exception() if retry_state.outcome else None
        return self.delay_for(retry_state.attempt_number, self.classify(error))
