"""
Collection metadata provider.

Reads `{dim, total_vectors}` from the metadata object next to the vector
blob. Without it, the vector count is derived from the blob size, which is
an approximation: any trailing partial record is ignored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from slice_search.services.errors import MetadataError
from slice_search.services.scanner import FLOAT32_BYTES

if TYPE_CHECKING:
    from slice_search.services.blob_store import FileBlobStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectionMeta:
    """Shape of the vector collection."""

    dim: int
    total_vectors: int
    source: Literal["metadata", "derived"]

    @property
    def record_bytes(self) -> int:
        """Bytes per stored vector."""
        return self.dim * FLOAT32_BYTES


def derive_total_vectors(store: FileBlobStore, vectors_key: str, dim: int) -> int:
    """Number of whole records the vector blob can hold (0 if it is missing)."""
    head = store.head(vectors_key)
    if head is None:
        return 0
    return head.size // (dim * FLOAT32_BYTES)


def load_collection_meta(
    store: FileBlobStore,
    metadata_key: str,
    vectors_key: str,
    default_dim: int,
) -> CollectionMeta:
    """
    Resolve collection metadata.

    Args:
        store: Blob store holding both objects
        metadata_key: Key of the JSON metadata object
        vectors_key: Key of the vector blob
        default_dim: Dimension to assume when no metadata object exists

    Returns:
        CollectionMeta whose total_vectors never exceeds what the blob holds

    Raises:
        MetadataError: If the metadata object is malformed
    """
    raw = store.get(metadata_key)
    if raw is None:
        total = derive_total_vectors(store, vectors_key, default_dim)
        logger.debug(
            "No metadata object, derived collection size from blob",
            extra={"dim": default_dim, "total_vectors": total},
        )
        return CollectionMeta(dim=default_dim, total_vectors=total, source="derived")

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MetadataError(f"Metadata object {metadata_key} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MetadataError(f"Metadata object {metadata_key} must be a JSON object")

    dim = data.get("dim")
    if not isinstance(dim, int) or isinstance(dim, bool) or dim <= 0:
        raise MetadataError(f"Metadata 'dim' must be a positive integer, got {dim!r}")

    derived = derive_total_vectors(store, vectors_key, dim)
    declared = data.get("total_vectors")
    if declared is None:
        return CollectionMeta(dim=dim, total_vectors=derived, source="derived")

    if not isinstance(declared, int) or isinstance(declared, bool) or declared < 0:
        raise MetadataError(
            f"Metadata 'total_vectors' must be a non-negative integer, got {declared!r}"
        )

    if declared > derived:
        logger.warning(
            "Metadata declares more vectors than the blob holds, clamping",
            extra={"declared": declared, "available": derived, "dim": dim},
        )
        declared = derived

    return CollectionMeta(dim=dim, total_vectors=declared, source="metadata")
