"""
Service information endpoint.

Exposes service configuration and store status.
"""

from __future__ import annotations

from fastapi import APIRouter

from slice_search.config import get_settings
from slice_search.core.state import get_app_state
from slice_search.schemas import InfoResponse, SearchInfo, StoreInfo

router = APIRouter()


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """
    Get service information and configuration.

    Returns:
        Service metadata, store location and search parameters
    """
    settings = get_settings()
    state = get_app_state()

    vectors_present = (
        state.blob_store is not None
        and state.blob_store.head(settings.store.vectors_key) is not None
    )

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        store=StoreInfo(
            path=settings.store.path,
            vectors_key=settings.store.vectors_key,
            metadata_key=settings.store.metadata_key,
            chunk_size_bytes=settings.store.chunk_size_bytes,
            vectors_present=vectors_present,
        ),
        search=SearchInfo(
            default_k=settings.search.default_k,
            max_k=settings.search.max_k,
            slice_size=settings.search.slice_size,
            strict_records=settings.search.strict_records,
            unit_norm_tolerance=settings.search.unit_norm_tolerance,
        ),
    )
