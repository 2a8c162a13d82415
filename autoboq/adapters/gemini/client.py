"""
Gemini Client - Google Gemini API client.

This is the SINGLE source of truth for all Gemini API interactions.

Features:
- Async operations over the synchronous SDK (worker threads)
- Client-side requests-per-minute guard
- Inline document parts (base64 artifacts)
- Reasoning budget and search tool configuration
- Persistent chat sessions

Retries are NOT performed here. The extraction orchestrator owns the
attempt budget, so a single call maps to exactly one API request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import google.generativeai as genai

from autoboq.config.errors import AutoBOQError, LLMError, RateLimitError, is_rate_limited

from .models import GeminiConfig, GeminiResponse, GenerationRequest

logger = logging.getLogger(__name__)

__all__ = ["GeminiClient", "GeminiChat", "classify_api_error"]


def classify_api_error(error: Exception) -> AutoBOQError:
    """
    Convert an SDK exception into the application taxonomy.

    Status/code 429 or a rate-limit marker in the message yields
    RateLimitError; anything else is an LLMError.
    """
    if isinstance(error, AutoBOQError):
        return error

    message = str(error)
    if is_rate_limited(error):
        return RateLimitError(f"Rate limit exceeded: {message}", {"status": 429})

    status = getattr(error, "code", None) or getattr(error, "status", None)
    return LLMError(f"Gemini API error: {message}", {"status": status} if status else None)


def _response_text(response: Any) -> str:
    """Read response text; blocked or empty candidates yield ''."""
    try:
        return response.text or ""
    except (ValueError, AttributeError):
        return ""


def _to_response(response: Any, model: str) -> GeminiResponse:
    usage = getattr(response, "usage_metadata", None)
    prompt_tokens = getattr(usage, "prompt_token_count", 0) if usage else 0
    completion_tokens = getattr(usage, "candidates_token_count", 0) if usage else 0
    return GeminiResponse(
        text=_response_text(response),
        model=model,
        prompt_tokens=prompt_tokens or 0,
        completion_tokens=completion_tokens or 0,
        total_tokens=(prompt_tokens or 0) + (completion_tokens or 0),
    )


class GeminiChat:
    """A live multi-turn chat bound to one model."""

    def __init__(self, chat: Any, model: str, timeout_seconds: int) -> None:
        self._chat = chat
        self.model = model
        self._timeout = timeout_seconds

    async def send(self, message: str) -> GeminiResponse:
        """
        Send one user turn.

        Raises:
            RateLimitError: Provider quota exceeded
            LLMError: Any other transport failure
        """
        try:
            response = await asyncio.to_thread(
                self._chat.send_message,
                message,
                request_options={"timeout": self._timeout},
            )
        except Exception as e:
            raise classify_api_error(e) from e
        return _to_response(response, self.model)


class GeminiClient:
    """
    Gemini API client keyed by an API key.

    Example:
        >>> client = GeminiClient(api_key="...")
        >>> response = await client.generate(GenerationRequest(model="gemini-flash-latest", prompt="Hi"))
        >>> print(response.text)
    """

    def __init__(
        self,
        api_key: str,
        config: GeminiConfig | None = None,
    ) -> None:
        """
        Initialize Gemini client.

        Args:
            api_key: Google AI Studio API key
            config: Client configuration. Uses defaults if None.
        """
        if not api_key:
            raise LLMError("Gemini API key is required")

        self.config = config or GeminiConfig()
        genai.configure(api_key=api_key)

        # Rate limiting state
        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()

        logger.info("GeminiClient initialized: rpm=%d", self.config.rate_limit_rpm)

    def _build_model(
        self,
        model: str,
        response_mime_type: str | None = None,
        reasoning_budget: int | None = None,
        search_tool: bool = False,
        system_instruction: str | None = None,
    ) -> genai.GenerativeModel:
        generation_config: dict[str, Any] = {
            "temperature": self.config.temperature,
            "max_output_tokens": self.config.max_output_tokens,
        }
        if response_mime_type:
            generation_config["response_mime_type"] = response_mime_type
        if reasoning_budget:
            generation_config["thinking_config"] = {"thinking_budget": reasoning_budget}

        kwargs: dict[str, Any] = {
            "model_name": model,
            "generation_config": generation_config,
        }
        if search_tool:
            kwargs["tools"] = "google_search_retrieval"
        if system_instruction:
            kwargs["system_instruction"] = system_instruction
        return genai.GenerativeModel(**kwargs)

    async def _check_rate_limit(self) -> None:
        """Enforce rate limiting."""
        async with self._rate_lock:
            now = time.time()
            # Remove requests older than 1 minute
            self._request_times = [t for t in self._request_times if now - t < 60]

            if len(self._request_times) >= self.config.rate_limit_rpm:
                wait_time = 60 - (now - self._request_times[0])
                if wait_time > 0:
                    logger.warning("Rate limit reached, waiting %.1fs", wait_time)
                    await asyncio.sleep(wait_time)

            self._request_times.append(time.time())

    async def generate(self, request: GenerationRequest) -> GeminiResponse:
        """
        Generate from inline artifacts plus prompt text.

        Args:
            request: Model, prompt, artifacts and capability flags

        Returns:
            GeminiResponse; text may be empty

        Raises:
            RateLimitError: Provider quota exceeded
            LLMError: Any other API failure
        """
        await self._check_rate_limit()

        contents: list[Any] = [artifact.to_part() for artifact in request.artifacts]
        contents.append(request.prompt)

        try:
            model = self._build_model(
                request.model,
                response_mime_type=request.response_mime_type,
                reasoning_budget=request.reasoning_budget,
                search_tool=request.search_tool,
            )
            response = await asyncio.to_thread(
                model.generate_content,
                contents,
                request_options={"timeout": self.config.timeout_seconds},
            )
        except Exception as e:
            raise classify_api_error(e) from e

        result = _to_response(response, request.model)
        logger.debug(
            "Generation complete: model=%s tokens=%d", request.model, result.total_tokens
        )
        return result

    def start_chat(self, model: str, system_instruction: str | None = None) -> GeminiChat:
        """Open a fresh chat with no prior history."""
        chat = self._build_model(model, system_instruction=system_instruction).start_chat()
        logger.info("Chat session started: model=%s", model)
        return GeminiChat(chat, model, self.config.timeout_seconds)
