"""
Pydantic request/response models for the slice search API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# === Request Models ===


class CollectionSearchRequest(BaseModel):
    """Request model for POST /search endpoint."""

    model_config = ConfigDict(extra="forbid")

    query: str | None = None
    """Query text, embedded through the configured provider."""

    embedding: list[float] | None = Field(None, min_length=1)
    """Precomputed query vector. Exactly one of query/embedding is required."""

    k: int | None = Field(None, le=10000)
    """Maximum results to return. Uses default from config if not specified.

    The actual limit is enforced by config.search.max_k.
    """


class SliceSearchRequest(CollectionSearchRequest):
    """Request model for POST /search_chunk endpoint."""

    start: int = 0
    """First vector index of the slice."""

    count: int
    """Number of vectors in the slice (clamped to the collection)."""


# === Response Models ===


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"]
    """Service health status."""

    uptime_seconds: float
    """Uptime in seconds since service start."""

    uptime: str
    """Human-readable uptime (e.g., "2d 3h 15m 42s")."""

    system_time: str
    """Current system time in yyyy-mm-dd hh:mm format (UTC)."""


class StoreInfo(BaseModel):
    """Store information for /info endpoint."""

    path: str
    vectors_key: str
    metadata_key: str
    chunk_size_bytes: int
    vectors_present: bool
    """Whether the vector blob exists."""


class SearchInfo(BaseModel):
    """Search configuration for /info endpoint."""

    default_k: int
    max_k: int
    slice_size: int
    strict_records: bool
    unit_norm_tolerance: float | None


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    """Service name."""

    version: str
    """Service version (semver)."""

    store: StoreInfo
    search: SearchInfo


class MetaResponse(BaseModel):
    """Response model for GET /meta endpoint."""

    dim: int
    """Values per stored vector."""

    total_vectors: int
    """Number of vectors in the collection."""

    source: Literal["metadata", "derived"]
    """Whether the count came from the metadata object or the blob size."""


class ScoredItem(BaseModel):
    """A single search result."""

    index: int
    """Absolute position of the vector in the store."""

    similarity: float
    """Dot product with the normalized query (higher = more similar)."""


class SliceInfo(BaseModel):
    """The slice a search covered, after clamping."""

    start: int
    count: int
    total_vectors: int
    dim: int


class SearchResponse(BaseModel):
    """Response model for POST /search_chunk and POST /search."""

    results: list[ScoredItem]
    """Ranked list of matches, best first."""

    slice: SliceInfo
    """Resolved slice."""

    count: int
    """Number of results returned."""

    processing_time_ms: float
    """Search time in milliseconds."""


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    """Machine-readable error code."""

    message: str
    """Human-readable error description."""

    details: dict[str, object]
    """Additional error context."""
