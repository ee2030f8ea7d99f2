"""
Slice bounds resolution.

Clamps a requested (start, count) window against the collection size. This
is the only gate in front of ranged reads, so it runs before any I/O.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SliceBounds:
    """A clamped slice `[start, start + count)` of the collection."""

    start: int
    count: int
    total_vectors: int

    @property
    def end(self) -> int:
        """Exclusive end index."""
        return self.start + self.count

    @property
    def is_empty(self) -> bool:
        """True when nothing is left to scan after clamping."""
        return self.count == 0

    def byte_range(self, record_bytes: int) -> tuple[int, int]:
        """Return (offset, length) in bytes for records of `record_bytes` each."""
        return self.start * record_bytes, self.count * record_bytes


def resolve_slice_bounds(start: int, count: int, total_vectors: int) -> SliceBounds:
    """
    Clamp a requested slice to the collection.

    Args:
        start: Requested first vector index
        count: Requested number of vectors
        total_vectors: Number of vectors in the collection

    Returns:
        SliceBounds with 0 <= start <= total_vectors and
        start + count <= total_vectors
    """
    total = max(total_vectors, 0)
    safe_start = min(max(start, 0), total)
    safe_count = max(0, min(count, total - safe_start))
    return SliceBounds(start=safe_start, count=safe_count, total_vectors=total)
