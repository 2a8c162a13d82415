"""
FastAPI Main Application - API entry point.

Run with: uvicorn autoboq.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autoboq import __version__
from autoboq.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import ErrorHandlerMiddleware, LatencyMiddleware, RequestIDMiddleware
from .routes import boq, chat, extraction, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting AutoBOQ API...")
    logger.info("  Model: %s", settings.gemini_model)
    logger.info("  Mode: %s", "simulation" if settings.simulation_mode else "live")

    await init_services()

    yield

    logger.info("Shutting down AutoBOQ API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="AutoBOQ API",
        description="Bill of Quantities extraction from engineering drawings",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - first added = innermost)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:*")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(extraction.router, prefix="/api/extraction", tags=["Extraction"])
    app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
    app.include_router(boq.router, prefix="/api/boq", tags=["BOQ"])

    return app


# Create app instance
app = create_app()
