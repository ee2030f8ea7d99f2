"""Vector helpers: query normalization and batched dot-product scoring."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from slice_search.services.errors import InvalidEmbeddingError

if TYPE_CHECKING:
    from collections.abc import Sequence


def normalize_query(vector: Sequence[float] | np.ndarray) -> np.ndarray:
    """
    L2-normalize a query vector.

    A zero vector has its norm floored to 1 and comes back unchanged
    instead of turning into NaN.

    Args:
        vector: Raw query values

    Returns:
        float64 array with Euclidean norm 1 (or all zeros)

    Raises:
        InvalidEmbeddingError: If the vector is empty or has NaN/inf values
    """
    try:
        arr = np.asarray(vector, dtype=np.float64)
    except (ValueError, TypeError) as e:
        raise InvalidEmbeddingError(f"Cannot convert to float array: {e}") from e

    if arr.ndim != 1 or arr.size == 0:
        raise InvalidEmbeddingError("Query must be a non-empty one-dimensional vector")

    if not np.isfinite(arr).all():
        raise InvalidEmbeddingError("Query contains NaN or infinite values")

    norm = float(np.sqrt(np.dot(arr, arr)))
    if norm == 0.0:
        norm = 1.0
    return arr / norm


def score_records(records: np.ndarray, query: np.ndarray) -> np.ndarray:
    """
    Dot product of every record against the query.

    Scores equal cosine similarity only when the stored records are unit-norm.

    Args:
        records: (n, dim) float32 array of decoded vectors
        query: Normalized (dim,) query

    Returns:
        (n,) float64 array of similarities
    """
    return records.astype(np.float64) @ query


def record_norms(records: np.ndarray) -> np.ndarray:
    """Euclidean norm of each row of a (n, dim) array."""
    return np.linalg.norm(records.astype(np.float64), axis=1)
