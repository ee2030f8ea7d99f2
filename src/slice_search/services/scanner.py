"""
Streaming decoder for flat float32 vector blobs.

A vector store is `dim` little-endian float32 values per record, packed
back to back. Ranged reads deliver it in chunks of arbitrary size, so a
record may be split across any number of chunks. `RecordDecoder` carries
the partial tail of each chunk over to the next one and hands back only
whole records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from slice_search.services.errors import TruncatedRecordError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

FLOAT32_BYTES = 4
RECORD_DTYPE = np.dtype("<f4")


@dataclass(frozen=True)
class DecodedBatch:
    """Whole records decoded from one chunk."""

    first_index: int
    vectors: np.ndarray
    """(n, dim) float32 array; row i is the vector at first_index + i."""

    def __len__(self) -> int:
        return int(self.vectors.shape[0])

    @property
    def indices(self) -> np.ndarray:
        """Absolute store index of each row."""
        return np.arange(self.first_index, self.first_index + len(self), dtype=np.int64)


class RecordDecoder:
    """
    Incremental decoder for fixed-size float32 records.

    Feed it chunks in stream order; each call returns the records that
    became complete. Indices keep counting from `first_index` across calls.

    Attributes:
        dim: Values per record
        record_bytes: Bytes per record (dim * 4)
        next_index: Index the next decoded record will get
    """

    def __init__(self, dim: int, first_index: int) -> None:
        if dim <= 0:
            raise ValueError(f"Dimension must be positive, got {dim}")
        if first_index < 0:
            raise ValueError(f"First index must be non-negative, got {first_index}")

        self.dim = dim
        self.record_bytes = dim * FLOAT32_BYTES
        self.next_index = first_index
        self._leftover = b""
        self._finished = False

    @property
    def pending(self) -> int:
        """Number of carried-over bytes that don't yet form a record."""
        return len(self._leftover)

    def feed(self, chunk: bytes | bytearray | memoryview) -> DecodedBatch:
        """
        Decode every record completed by `chunk`.

        Args:
            chunk: Next bytes of the stream (may be empty)

        Returns:
            Batch of zero or more whole records
        """
        if self._finished:
            raise RuntimeError("Decoder already finished")

        combined = self._leftover + bytes(chunk) if self._leftover else bytes(chunk)
        n_records = len(combined) // self.record_bytes
        usable = n_records * self.record_bytes

        vectors = np.frombuffer(
            combined, dtype=RECORD_DTYPE, count=n_records * self.dim
        ).reshape(n_records, self.dim)

        batch = DecodedBatch(first_index=self.next_index, vectors=vectors)
        self.next_index += n_records
        self._leftover = combined[usable:]
        return batch

    def finish(self, strict: bool) -> int:
        """
        Mark end of stream.

        Args:
            strict: Raise on a partial trailing record instead of dropping it

        Returns:
            Number of trailing bytes dropped (0 for a clean stream)

        Raises:
            TruncatedRecordError: If strict and a partial record remains
        """
        self._finished = True
        pending = self.pending
        self._leftover = b""
        if pending == 0:
            return 0

        if strict:
            raise TruncatedRecordError(pending_bytes=pending, record_bytes=self.record_bytes)

        logger.warning(
            "Dropping partial record at end of stream",
            extra={
                "pending_bytes": pending,
                "record_bytes": self.record_bytes,
                "next_index": self.next_index,
            },
        )
        return pending


def scan_records(
    chunks: Iterable[bytes],
    dim: int,
    first_index: int,
    strict: bool,
) -> Iterator[DecodedBatch]:
    """
    Lazily decode a chunked byte stream into record batches.

    Empty batches are skipped. The stream must be consumed exactly once.

    Args:
        chunks: Byte chunks in stream order
        dim: Values per record
        first_index: Store index of the first record in the stream
        strict: See RecordDecoder.finish

    Yields:
        Non-empty DecodedBatch objects with increasing indices
    """
    decoder = RecordDecoder(dim=dim, first_index=first_index)
    for chunk in chunks:
        batch = decoder.feed(chunk)
        if len(batch):
            yield batch
    decoder.finish(strict=strict)
