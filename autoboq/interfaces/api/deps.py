"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the model client and chat engine.
"""

from __future__ import annotations

import asyncio
from functools import lru_cache

from fastapi import Depends

from autoboq.adapters import GeminiClient, SimulatedGeminiClient, build_client
from autoboq.config import get_settings
from autoboq.domains.chat import ConversationalPatchEngine
from autoboq.domains.extraction import ExtractionOrchestrator


@lru_cache
def get_model_client() -> GeminiClient | SimulatedGeminiClient:
    """Get model client singleton (simulated when no API key is set)."""
    return build_client(get_settings())


def get_orchestrator(
    client: GeminiClient | SimulatedGeminiClient = Depends(get_model_client),
) -> ExtractionOrchestrator:
    """Fresh orchestrator per request; it keeps no state between runs."""
    return ExtractionOrchestrator.from_settings(client, get_settings())


@lru_cache
def get_patch_engine() -> ConversationalPatchEngine:
    """Get chat engine singleton; it swaps sessions on model change."""
    return ConversationalPatchEngine(get_model_client(), get_settings().gemini_model)


@lru_cache
def get_run_lock() -> asyncio.Lock:
    """One extraction run at a time."""
    return asyncio.Lock()


@lru_cache
def get_chat_lock() -> asyncio.Lock:
    """One chat exchange at a time."""
    return asyncio.Lock()


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    get_model_client()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    get_patch_engine.cache_clear()
    get_model_client.cache_clear()
