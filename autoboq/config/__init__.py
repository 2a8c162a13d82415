"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    AutoBOQError,
    EncodingError,
    ErrorCode,
    ExtractionCancelled,
    ExtractionError,
    LLMError,
    RateLimitError,
    ResponseShapeError,
    is_rate_limited,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "AutoBOQError",
    "EncodingError",
    "ExtractionError",
    "ExtractionCancelled",
    "ResponseShapeError",
    "is_rate_limited",
    "LLMError",
    "RateLimitError",
]
