"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

from __future__ import annotations

from fastapi import FastAPI

from slice_search.config import get_settings
from slice_search.core.exceptions import register_exception_handlers
from slice_search.core.lifespan import lifespan
from slice_search.routers import health, info, meta, search


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    # Load settings (validates configuration)
    settings = get_settings()

    application = FastAPI(
        title=f"{settings.service.name} Service",
        version=settings.service.version,
        lifespan=lifespan,
    )

    register_exception_handlers(application)

    application.include_router(health.router, tags=["Operations"])
    application.include_router(info.router, tags=["Operations"])
    application.include_router(meta.router, tags=["Collection"])
    application.include_router(search.router, tags=["Search"])

    return application
