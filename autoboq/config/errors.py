"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from autoboq.config.errors import ErrorCode, AutoBOQError

    raise AutoBOQError(ErrorCode.ENCODING_FAILED, "Could not read drawing")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Artifact errors
    ENCODING_FAILED = "ENCODING_FAILED"

    # Extraction errors
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    EXTRACTION_CANCELLED = "EXTRACTION_CANCELLED"
    EXTRACTION_INVALID_RESPONSE = "EXTRACTION_INVALID_RESPONSE"

    # LLM/Model errors
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AutoBOQError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Domain-specific exceptions for cleaner imports
class EncodingError(AutoBOQError):
    """A source artifact could not be read to completion."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.ENCODING_FAILED, message, details)


class ExtractionError(AutoBOQError):
    """Extraction domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_FAILED, message, details)


class ExtractionCancelled(AutoBOQError):
    """Raised inside the orchestrator when its cancellation token fires."""

    def __init__(self, message: str = "Extraction cancelled", details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_CANCELLED, message, details)


class ResponseShapeError(AutoBOQError):
    """Model output is not valid JSON or does not match the expected schema."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_INVALID_RESPONSE, message, details)


class LLMError(AutoBOQError):
    """LLM/model errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_UNAVAILABLE, message, details)


class RateLimitError(AutoBOQError):
    """The model provider rejected the call with a quota/rate limit."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_RATE_LIMITED, message, details)



_RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "rate limit", "quota")


def is_rate_limited(error: BaseException | None) -> bool:
    """
    True if a failed call was rejected for quota or rate limiting.

    Matches RateLimitError, a 429 ``code``/``status`` attribute, or a
    rate-limit marker anywhere in the error message.
    """
    if error is None:
        return False
    if isinstance(error, RateLimitError):
        return True
    status = getattr(error, "code", None)
    if status is None:
        status = getattr(error, "status", None)
    if status == 429:
        return True
    message = str(error).lower()
    return any(marker in message for marker in _RATE_LIMIT_MARKERS)
