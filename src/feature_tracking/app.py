"""
FastAPI application factory.
"""

from __future__ import annotations

from fastapi import FastAPI

from feature_tracking.config import get_settings
from feature_tracking.core.exceptions import register_exception_handlers
from feature_tracking.core.lifespan import lifespan
from feature_tracking.routers import detect, extract, health, info, match


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance with all routers registered
    """
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.service.name} Service",
        version=settings.service.version,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Operations"])
    app.include_router(info.router, tags=["Operations"])
    app.include_router(detect.router, tags=["Features"])
    app.include_router(extract.router, tags=["Features"])
    app.include_router(match.router, tags=["Matching"])

    return app
