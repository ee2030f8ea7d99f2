"""
Slice-scoped streaming similarity search.

Wires bounds resolution, the ranged read, the record decoder, dot-product
scoring and top-k selection into one call. A call owns its decoder and
selector, so concurrent calls share no mutable state. Memory use is bounded
by k, dim and the chunk size, not by the slice length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from slice_search.services.bounds import resolve_slice_bounds
from slice_search.services.errors import (
    DimensionMismatchError,
    InvalidRequestError,
    NonUnitVectorError,
)
from slice_search.services.scanner import scan_records
from slice_search.services.topk import ScoredCandidate, TopKSelector, merge_top_k
from slice_search.services.vector_math import record_norms, score_records

if TYPE_CHECKING:
    from slice_search.services.blob_store import FileBlobStore
    from slice_search.services.metadata import CollectionMeta
    from slice_search.services.scanner import DecodedBatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliceDescriptor:
    """The slice a search actually covered, after clamping."""

    start: int
    count: int
    total_vectors: int
    dim: int


@dataclass(frozen=True)
class SliceSearchResult:
    """Top-k candidates of one search call."""

    slice: SliceDescriptor
    results: list[ScoredCandidate] = field(default_factory=list)
    scanned: int = 0
    """Number of records decoded and scored."""


def validate_search_params(start: int, count: int, k: int) -> None:
    """
    Reject malformed slice parameters before any I/O.

    Raises:
        InvalidRequestError: On negative start, non-positive count or k
    """
    if start < 0:
        raise InvalidRequestError("start must be >= 0")
    if count <= 0:
        raise InvalidRequestError("count must be > 0")
    if k < 1:
        raise InvalidRequestError("k must be >= 1")


def _check_query(query: np.ndarray, meta: CollectionMeta) -> None:
    if query.ndim != 1 or query.shape[0] != meta.dim:
        raise DimensionMismatchError(expected=meta.dim, received=int(query.size))


def _check_unit_norm(batch: DecodedBatch, tolerance: float) -> None:
    norms = record_norms(batch.vectors)
    # Written as not-within so NaN norms count as violations
    violations = np.flatnonzero(~(np.abs(norms - 1.0) <= tolerance))
    if violations.size:
        row = int(violations[0])
        raise NonUnitVectorError(
            index=batch.first_index + row,
            norm=float(norms[row]),
            tolerance=tolerance,
        )


def _push_finite(selector: TopKSelector, batch: DecodedBatch, scores: np.ndarray) -> None:
    finite = np.isfinite(scores)
    if finite.all():
        selector.push_many(batch.indices, scores)
        return

    skipped = batch.indices[~finite]
    logger.warning(
        "Skipping records with non-finite values",
        extra={"skipped": int(skipped.size), "first_index": int(skipped[0])},
    )
    selector.push_many(batch.indices[finite], scores[finite])


def search_slice(
    store: FileBlobStore,
    key: str,
    query: np.ndarray,
    meta: CollectionMeta,
    start: int,
    count: int,
    k: int,
    *,
    chunk_size: int,
    strict_records: bool,
    unit_norm_tolerance: float | None = None,
) -> SliceSearchResult:
    """
    Find the k stored vectors in a slice most similar to the query.

    Args:
        store: Blob store holding the vector blob
        key: Key of the vector blob
        query: L2-normalized query of length meta.dim
        meta: Collection shape
        start: Requested first index (clamped to the collection)
        count: Requested number of vectors (clamped to the collection)
        k: Number of candidates to keep
        chunk_size: Maximum bytes per ranged-read chunk
        strict_records: Fail on a trailing partial record
        unit_norm_tolerance: If set, require every stored vector to have
            norm within this distance of 1

    Returns:
        SliceSearchResult, candidates best first

    Raises:
        InvalidRequestError: If start, count or k are out of range
        DimensionMismatchError: If the query length differs from meta.dim
        StoreNotFoundError: If the vector blob is missing
        RangeReadError: If the storage layer fails mid-read
        TruncatedRecordError: If strict and the stream ends mid-record
        NonUnitVectorError: If a stored vector fails the norm check
    """
    validate_search_params(start, count, k)
    _check_query(query, meta)

    bounds = resolve_slice_bounds(start, count, meta.total_vectors)
    descriptor = SliceDescriptor(
        start=bounds.start,
        count=bounds.count,
        total_vectors=bounds.total_vectors,
        dim=meta.dim,
    )
    if bounds.is_empty:
        return SliceSearchResult(slice=descriptor)

    offset, length = bounds.byte_range(meta.record_bytes)
    selector = TopKSelector(k)
    scanned = 0

    with store.open_range(key, offset, length, chunk_size) as chunks:
        for batch in scan_records(
            chunks, dim=meta.dim, first_index=bounds.start, strict=strict_records
        ):
            if unit_norm_tolerance is not None:
                _check_unit_norm(batch, unit_norm_tolerance)
            _push_finite(selector, batch, score_records(batch.vectors, query))
            scanned += len(batch)

    logger.debug(
        "Slice search complete",
        extra={
            "start": bounds.start,
            "count": bounds.count,
            "scanned": scanned,
            "k": k,
        },
    )
    return SliceSearchResult(slice=descriptor, results=selector.drain(), scanned=scanned)


def search_collection(
    store: FileBlobStore,
    key: str,
    query: np.ndarray,
    meta: CollectionMeta,
    k: int,
    *,
    slice_size: int,
    chunk_size: int,
    strict_records: bool,
    unit_norm_tolerance: float | None = None,
) -> SliceSearchResult:
    """
    Search the whole collection as consecutive slices and merge the results.

    Each slice is an independent `search_slice` call; per-slice top-k lists
    are combined with `merge_top_k`.

    Args:
        slice_size: Vectors per slice

    Returns:
        SliceSearchResult whose descriptor spans the full collection
    """
    if slice_size < 1:
        raise InvalidRequestError("slice_size must be >= 1")
    if k < 1:
        raise InvalidRequestError("k must be >= 1")
    _check_query(query, meta)

    total = max(meta.total_vectors, 0)
    partials: list[list[ScoredCandidate]] = []
    scanned = 0
    for slice_start in range(0, total, slice_size):
        partial = search_slice(
            store,
            key,
            query,
            meta,
            slice_start,
            slice_size,
            k,
            chunk_size=chunk_size,
            strict_records=strict_records,
            unit_norm_tolerance=unit_norm_tolerance,
        )
        partials.append(partial.results)
        scanned += partial.scanned

    descriptor = SliceDescriptor(start=0, count=total, total_vectors=total, dim=meta.dim)
    return SliceSearchResult(slice=descriptor, results=merge_top_k(partials, k), scanned=scanned)
