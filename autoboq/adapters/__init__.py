"""
Adapters - External service integrations.

All external API calls are wrapped here to isolate domains from third-party changes.
"""

from .factory import build_client
from .gemini import GeminiClient, SimulatedGeminiClient

__all__ = [
    "GeminiClient",
    "SimulatedGeminiClient",
    "build_client",
]
