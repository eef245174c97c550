"""
État civil calendar - reference FastAPI backend.

Serves the `/api/calendar` contract consumed by the calendar client
(features/calendar/client.py), backed by an in-memory store.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from etatcivil.config import get_settings
from etatcivil.core.exceptions import AppBaseError, app_error_handler

# ── Feature Routers ──────────────────────────────────────
from etatcivil.features.calendar.router import router as calendar_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup & shutdown."""
    settings = get_settings()
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} starting...")
    yield
    logger.info("👋 Shutting down...")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Calendrier des événements d'état civil",
        lifespan=lifespan,
    )

    app.add_exception_handler(AppBaseError, app_error_handler)

    # ── Register Feature Routers ─────────────────────────
    app.include_router(calendar_router, prefix="/api/calendar", tags=["Calendar"])

    # ── Health Check ─────────────────────────────────────
    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    return app


app = create_app()
