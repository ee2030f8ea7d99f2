"""
Health check endpoint.

Provides service health status for container orchestration
(Docker health checks, Kubernetes probes).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter

from slice_search.config import get_settings
from slice_search.core.state import get_app_state
from slice_search.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check service health.

    Returns health status based on:
    - "healthy": Service running and the vector blob is present
    - "degraded": Service running but the blob store was not initialized
      or holds no vector blob, so searches would fail

    Returns:
        Health status with uptime and system time
    """
    settings = get_settings()
    state = get_app_state()

    system_time = datetime.now(UTC).strftime("%Y-%m-%d %H:%M")

    store = state.blob_store
    has_vectors = store is not None and store.head(settings.store.vectors_key) is not None
    status: Literal["healthy", "degraded"] = "healthy" if has_vectors else "degraded"

    return HealthResponse(
        status=status,
        uptime_seconds=state.uptime_seconds,
        uptime=state.uptime_formatted,
        system_time=system_time,
    )
