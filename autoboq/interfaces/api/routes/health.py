"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from autoboq import __version__
from autoboq.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "autoboq"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "AutoBOQ API",
        "version": __version__,
        "description": "Bill of Quantities extraction from engineering drawings",
        "simulation_mode": get_settings().simulation_mode,
        "docs": "/docs",
    }
