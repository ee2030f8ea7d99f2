"""
Application lifecycle management.

Handles startup (blob store and embedding client creation) and shutdown
events for proper resource management.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from slice_search.clients.embeddings import EmbeddingClient
from slice_search.config import Settings, get_settings
from slice_search.core.state import init_app_state
from slice_search.logging import get_logger, setup_logging
from slice_search.services.blob_store import FileBlobStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI


def create_blob_store(settings: Settings) -> FileBlobStore:
    """Create the file-backed blob store at the configured path."""
    return FileBlobStore(root_dir=Path(settings.store.path))


def create_embedding_client(settings: Settings) -> EmbeddingClient:
    """Create the embedding provider client from settings."""
    return EmbeddingClient(
        base_url=settings.embeddings.base_url,
        model=settings.embeddings.model,
        api_key=settings.embeddings.api_key,
        timeout=settings.embeddings.timeout_seconds,
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Manage application lifecycle.

    Startup:
    - Initialize logging
    - Initialize application state
    - Open blob store and embedding client

    Shutdown:
    - Close embedding client
    - Log shutdown with uptime
    """
    # === STARTUP ===
    settings = get_settings()

    setup_logging(settings.logging.level, settings.service.name, settings.logging.format)
    logger = get_logger()

    state = init_app_state()

    store = create_blob_store(settings)
    state.blob_store = store
    state.embedding_client = create_embedding_client(settings)

    head = store.head(settings.store.vectors_key)
    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "host": settings.server.host,
            "port": settings.server.port,
            "store_path": settings.store.path,
            "vectors_key": settings.store.vectors_key,
            "vectors_bytes": head.size if head is not None else None,
        },
    )

    if head is None:
        logger.warning(
            "Vector blob not found, searches will fail until it is present",
            extra={"vectors_key": settings.store.vectors_key},
        )

    logger.info("Service ready to accept requests")

    yield  # Application runs here

    # === SHUTDOWN ===
    await state.embedding_client.close()
    logger.info(
        "Service shutting down",
        extra={
            "uptime_seconds": state.uptime_seconds,
            "uptime": state.uptime_formatted,
        },
    )
