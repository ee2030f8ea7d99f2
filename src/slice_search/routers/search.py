"""
Similarity search endpoints.

POST /search_chunk scans one slice of the vector blob. POST /search scans
the whole collection slice by slice and merges the per-slice top-k.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import APIRouter

from slice_search.config import get_settings
from slice_search.core.exceptions import ServiceError, service_error_from
from slice_search.core.state import get_app_state
from slice_search.logging import get_logger
from slice_search.routers.meta import require_blob_store, resolve_collection_meta
from slice_search.schemas import (
    CollectionSearchRequest,
    ErrorResponse,
    ScoredItem,
    SearchResponse,
    SliceInfo,
    SliceSearchRequest,
)
from slice_search.services.errors import SliceSearchError, StoreNotFoundError
from slice_search.services.slice_search import (
    search_collection,
    search_slice,
    validate_search_params,
)
from slice_search.services.vector_math import normalize_query

if TYPE_CHECKING:
    import numpy as np

    from slice_search.services.blob_store import FileBlobStore
    from slice_search.services.slice_search import SliceSearchResult

router = APIRouter()

SEARCH_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse, "description": "Invalid parameters or query"},
    404: {"model": ErrorResponse, "description": "Vector blob not found"},
    500: {"model": ErrorResponse, "description": "Stored data failed a check"},
    502: {"model": ErrorResponse, "description": "Storage or embedding provider failure"},
    503: {"model": ErrorResponse, "description": "Blob store not initialized"},
}


def _invalid_request(reason: str) -> ServiceError:
    return ServiceError(
        error="invalid_request",
        message=f"Invalid request: {reason}",
        status_code=400,
        details={"reason": reason},
    )


def resolve_k(requested: int | None) -> int:
    """Apply the configured default and ceiling to a requested k."""
    settings = get_settings()
    k = requested if requested is not None else settings.search.default_k
    if k < 1:
        raise _invalid_request("k must be >= 1")
    if k > settings.search.max_k:
        raise ServiceError(
            error="invalid_request",
            message=f"Invalid request: k must be <= {settings.search.max_k}",
            status_code=400,
            details={"reason": "k exceeds max_k", "max_k": settings.search.max_k},
        )
    return k


async def resolve_query_vector(request: CollectionSearchRequest) -> np.ndarray:
    """
    Turn the request's query text or embedding into a normalized vector.

    Raises:
        ServiceError: If neither or both are given, the text is blank, the
            provider fails, or the vector is not finite
    """
    if request.embedding is not None and request.query is not None:
        raise _invalid_request("provide either query or embedding, not both")

    if request.embedding is not None:
        raw = request.embedding
    else:
        if request.query is None or not request.query.strip():
            raise _invalid_request("query required")
        client = get_app_state().embedding_client
        if client is None:
            raise ServiceError(
                error="service_unavailable",
                message="Embedding client is not initialized",
                status_code=503,
                details={},
            )
        raw = await client.embed(request.query)

    try:
        return normalize_query(raw)
    except SliceSearchError as e:
        raise service_error_from(e) from e


def require_vectors_blob(store: FileBlobStore, key: str) -> None:
    """Fail with 404 when the vector blob is absent from the store."""
    if store.head(key) is None:
        raise service_error_from(StoreNotFoundError(key))


def _to_response(result: SliceSearchResult, elapsed_ms: float) -> SearchResponse:
    items = [ScoredItem(index=c.index, similarity=c.similarity) for c in result.results]
    return SearchResponse(
        results=items,
        slice=SliceInfo(
            start=result.slice.start,
            count=result.slice.count,
            total_vectors=result.slice.total_vectors,
            dim=result.slice.dim,
        ),
        count=len(items),
        processing_time_ms=round(elapsed_ms, 3),
    )


@router.post("/search_chunk", response_model=SearchResponse, responses=SEARCH_ERROR_RESPONSES)
async def search_chunk(request: SliceSearchRequest) -> SearchResponse:
    """
    Search one slice of the collection.

    Args:
        request: Query (text or embedding), slice start/count and k

    Returns:
        Top-k matches of the slice with the resolved slice descriptor

    Raises:
        ServiceError: On invalid input, missing store or read failures
    """
    settings = get_settings()
    logger = get_logger()

    k = resolve_k(request.k)
    try:
        validate_search_params(request.start, request.count, k)
    except SliceSearchError as e:
        raise service_error_from(e) from e

    store = require_blob_store()
    require_vectors_blob(store, settings.store.vectors_key)
    query = await resolve_query_vector(request)
    meta = resolve_collection_meta(store)

    start_time = time.perf_counter()
    try:
        result = search_slice(
            store,
            settings.store.vectors_key,
            query,
            meta,
            request.start,
            request.count,
            k,
            chunk_size=settings.store.chunk_size_bytes,
            strict_records=settings.search.strict_records,
            unit_norm_tolerance=settings.search.unit_norm_tolerance,
        )
    except SliceSearchError as e:
        raise service_error_from(e) from e
    elapsed_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Slice search served",
        extra={
            "start": result.slice.start,
            "count": result.slice.count,
            "scanned": result.scanned,
            "k": k,
            "processing_time_ms": round(elapsed_ms, 3),
        },
    )
    return _to_response(result, elapsed_ms)


@router.post("/search", response_model=SearchResponse, responses=SEARCH_ERROR_RESPONSES)
async def search(request: CollectionSearchRequest) -> SearchResponse:
    """
    Search the whole collection.

    Scans consecutive slices of `search.slice_size` vectors and merges the
    per-slice results into one top-k.

    Raises:
        ServiceError: On invalid input, missing store or read failures
    """
    settings = get_settings()
    logger = get_logger()

    k = resolve_k(request.k)
    store = require_blob_store()
    require_vectors_blob(store, settings.store.vectors_key)
    query = await resolve_query_vector(request)
    meta = resolve_collection_meta(store)

    start_time = time.perf_counter()
    try:
        result = search_collection(
            store,
            settings.store.vectors_key,
            query,
            meta,
            k,
            slice_size=settings.search.slice_size,
            chunk_size=settings.store.chunk_size_bytes,
            strict_records=settings.search.strict_records,
            unit_norm_tolerance=settings.search.unit_norm_tolerance,
        )
    except SliceSearchError as e:
        raise service_error_from(e) from e
    elapsed_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        "Collection search served",
        extra={
            "total_vectors": result.slice.total_vectors,
            "scanned": result.scanned,
            "k": k,
            "processing_time_ms": round(elapsed_ms, 3),
        },
    )
    return _to_response(result, elapsed_ms)
