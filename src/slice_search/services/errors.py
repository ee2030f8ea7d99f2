"""
Exceptions raised by the slice search engine and its store adapters.

All errors are local to a single search call. Routers translate them into
ServiceError responses; nothing here is retried.
"""

from __future__ import annotations


class SliceSearchError(Exception):
    """Base exception for slice search operations."""

    pass


class InvalidRequestError(SliceSearchError):
    """Raised when slice parameters or the query are malformed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid request: {reason}")


class InvalidEmbeddingError(SliceSearchError):
    """Raised when the query vector contains non-finite values."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid embedding: {reason}")


class DimensionMismatchError(SliceSearchError):
    """Raised when the query dimension doesn't match the collection dimension."""

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(
            f"Query dimension {received} does not match collection dimension {expected}"
        )


class StoreNotFoundError(SliceSearchError):
    """Raised when the vector blob does not exist."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Vector store object not found: {key}")


class RangeReadError(SliceSearchError):
    """Raised when the storage layer fails to deliver a requested byte range."""

    def __init__(self, key: str, offset: int, length: int, reason: str) -> None:
        self.key = key
        self.offset = offset
        self.length = length
        self.reason = reason
        super().__init__(
            f"Range read failed for {key} at offset {offset} (length {length}): {reason}"
        )


class TruncatedRecordError(SliceSearchError):
    """Raised when a stream ends in the middle of a vector record."""

    def __init__(self, pending_bytes: int, record_bytes: int) -> None:
        self.pending_bytes = pending_bytes
        self.record_bytes = record_bytes
        super().__init__(
            f"Stream ended with {pending_bytes} bytes of a {record_bytes}-byte record"
        )


class NonUnitVectorError(SliceSearchError):
    """Raised when a stored vector is not unit-norm within tolerance."""

    def __init__(self, index: int, norm: float, tolerance: float) -> None:
        self.index = index
        self.norm = norm
        self.tolerance = tolerance
        super().__init__(
            f"Stored vector {index} has norm {norm:.6f}, expected 1 +/- {tolerance}"
        )


class MetadataError(SliceSearchError):
    """Raised when the collection metadata object is unusable."""

    pass
