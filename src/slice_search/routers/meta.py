"""
Collection metadata endpoint.

Also holds the store and metadata lookups shared with the search routes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from slice_search.config import get_settings
from slice_search.core.exceptions import ServiceError, service_error_from
from slice_search.core.state import get_app_state
from slice_search.schemas import MetaResponse
from slice_search.services.errors import MetadataError
from slice_search.services.metadata import load_collection_meta

if TYPE_CHECKING:
    from slice_search.services.blob_store import FileBlobStore
    from slice_search.services.metadata import CollectionMeta

router = APIRouter()


def require_blob_store() -> FileBlobStore:
    """Get initialized blob store or raise a service error."""
    store = get_app_state().blob_store
    if store is None:
        raise ServiceError(
            error="service_unavailable",
            message="Blob store is not initialized",
            status_code=503,
            details={},
        )
    return store


def resolve_collection_meta(store: FileBlobStore) -> CollectionMeta:
    """Load collection metadata, translating failures into service errors."""
    settings = get_settings()
    try:
        return load_collection_meta(
            store,
            metadata_key=settings.store.metadata_key,
            vectors_key=settings.store.vectors_key,
            default_dim=settings.collection.default_dimension,
        )
    except MetadataError as e:
        raise service_error_from(e) from e
    except OSError as e:
        raise ServiceError(
            error="storage_read_failed",
            message="Failed to read collection metadata",
            status_code=503,
            details={
                "metadata_key": settings.store.metadata_key,
                "exception_type": e.__class__.__name__,
                "reason": str(e),
            },
        ) from e


@router.get("/meta", response_model=MetaResponse)
async def get_meta() -> MetaResponse:
    """
    Get the collection shape.

    Returns:
        Vector dimension, vector count and where the count came from
    """
    meta = resolve_collection_meta(require_blob_store())
    return MetaResponse(dim=meta.dim, total_vectors=meta.total_vectors, source=meta.source)
