"""
Gemini Models - Request/Response types for Gemini API.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class GeminiModel(str, Enum):
    """Models selectable for extraction and chat."""

    PRO_3 = "gemini-3-pro-preview"
    FLASH_3 = "gemini-3-flash-preview"
    FLASH_THINKING = "gemini-2.5-flash-thinking-latest"
    FLASH = "gemini-flash-latest"
    FLASH_LITE = "gemini-flash-lite-latest"


class ModelCapabilities(BaseModel):
    """Auxiliary request flags attached for a given model."""

    reasoning_budget: int | None = None
    search_tool: bool = False

    model_config = {"frozen": True}

    @classmethod
    def for_model(cls, model: str) -> "ModelCapabilities":
        """Capability flags never change orchestration, only the request."""
        if model == GeminiModel.PRO_3.value or "thinking" in model:
            return cls(reasoning_budget=4096, search_tool=True)
        if model == GeminiModel.FLASH_3.value:
            return cls(reasoning_budget=2048)
        return cls()


class GeminiConfig(BaseModel):
    """Configuration for Gemini client."""

    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=65536)
    timeout_seconds: int = Field(default=300)
    rate_limit_rpm: int = Field(default=60)

    model_config = {"frozen": True}


class InlineArtifact(BaseModel):
    """A file in transport-safe form: base64 payload plus media type."""

    payload: str
    media_type: str = Field(alias="mediaType")
    name: str | None = None

    model_config = {"frozen": True, "populate_by_name": True}

    def to_bytes(self) -> bytes:
        """Decode the payload back to the original bytes."""
        return base64.b64decode(self.payload, validate=True)

    def to_part(self) -> dict[str, Any]:
        """Render as an inline-data content part."""
        return {"mime_type": self.media_type, "data": self.to_bytes()}


class GenerationRequest(BaseModel):
    """One-shot generation over inline artifacts plus a prompt."""

    model: str
    prompt: str
    artifacts: list[InlineArtifact] = Field(default_factory=list)
    reasoning_budget: int | None = None
    search_tool: bool = False
    response_mime_type: str = "application/json"
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class GeminiResponse(BaseModel):
    """Generic Gemini API response."""

    text: str = ""
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
