"""
Client Factory - Selects the live or simulated model client.

Architecture:
    API key configured → GeminiClient (live)
    No API key → SimulatedGeminiClient (offline sample data)
"""

from __future__ import annotations

import logging

from autoboq.config import Settings, get_settings

from .gemini import GeminiClient, GeminiConfig, SimulatedGeminiClient

logger = logging.getLogger(__name__)

__all__ = ["build_client"]


def build_client(
    settings: Settings | None = None,
    simulate: bool = False,
) -> GeminiClient | SimulatedGeminiClient:
    """
    Build the model client for the current configuration.

    Args:
        settings: Application settings (cached settings if None)
        simulate: Force the offline client even when a key is present
    """
    settings = settings or get_settings()

    if simulate or settings.simulation_mode:
        logger.info("Model client: simulation (no API key or forced)")
        return SimulatedGeminiClient(delay_seconds=settings.simulation_delay_seconds)

    logger.info("Model client: Gemini")
    return GeminiClient(
        api_key=settings.gemini_api_key or "",
        config=GeminiConfig(
            temperature=settings.gemini_temperature,
            timeout_seconds=settings.request_timeout_seconds,
        ),
    )
