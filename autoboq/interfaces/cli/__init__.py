"""
CLI Interface - Command-line tools for AutoBOQ.

Provides commands for:
- BOQ extraction from drawings
- Conversational BOQ editing
- Module catalog listing
- Serving the API
"""

from .main import app, main

__all__ = ["app", "main"]
