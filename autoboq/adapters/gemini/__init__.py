"""
Gemini Adapter - Google Gemini API client.

This is the ONLY place that calls the Gemini API.
All domains use this adapter for LLM operations.
"""

from .client import GeminiChat, GeminiClient, classify_api_error
from .models import (
    GeminiConfig,
    GeminiModel,
    GeminiResponse,
    GenerationRequest,
    InlineArtifact,
    ModelCapabilities,
)
from .simulation import SAMPLE_BOQ_DATA, SimulatedChat, SimulatedGeminiClient

__all__ = [
    "GeminiClient",
    "GeminiChat",
    "classify_api_error",
    "GeminiConfig",
    "GeminiModel",
    "GeminiResponse",
    "GenerationRequest",
    "InlineArtifact",
    "ModelCapabilities",
    "SAMPLE_BOQ_DATA",
    "SimulatedGeminiClient",
    "SimulatedChat",
]
