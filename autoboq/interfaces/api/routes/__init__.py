"""
API Routes.
"""

from . import boq, chat, extraction, health

__all__ = ["health", "extraction", "chat", "boq"]
