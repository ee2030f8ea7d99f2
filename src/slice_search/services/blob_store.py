"""
File-backed blob storage with ranged reads.

Stores objects as files in a configurable root directory, one file per key.
Large objects (the vector blob) are never read whole: `open_range` streams
a byte window in bounded chunks.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO

from slice_search.services.errors import RangeReadError, StoreNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_VALID_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


@dataclass(frozen=True)
class BlobHead:
    """Object metadata returned by `head`."""

    key: str
    size: int


class FileBlobStore:
    """
    File-backed binary object store.

    Objects are stored as `{root}/{key}`. Keys may contain alphanumerics,
    dots, hyphens and underscores, and cannot start with a dot.
    """

    def __init__(self, root_dir: Path) -> None:
        self.root = root_dir
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _VALID_KEY_PATTERN.match(key):
            raise ValueError(f"Invalid object key: {key!r}")
        return self.root / key

    def put(self, key: str, data: bytes) -> None:
        """Store an object."""
        self._path(key).write_bytes(data)

    def get(self, key: str) -> bytes | None:
        """Retrieve a whole object. Returns None if not found."""
        path = self._path(key)
        return path.read_bytes() if path.exists() else None

    def head(self, key: str) -> BlobHead | None:
        """Return object size without reading it. Returns None if not found."""
        path = self._path(key)
        if not path.is_file():
            return None
        return BlobHead(key=key, size=path.stat().st_size)

    @contextmanager
    def open_range(
        self,
        key: str,
        offset: int,
        length: int,
        chunk_size: int,
    ) -> Iterator[Iterator[bytes]]:
        """
        Open a byte range of an object as a stream of chunks.

        The file handle is released when the context exits, whether or not
        the stream was consumed.

        Args:
            key: Object key
            offset: First byte of the range
            length: Number of bytes in the range
            chunk_size: Maximum bytes per chunk

        Yields:
            Iterator over chunks that together cover exactly `length` bytes

        Raises:
            StoreNotFoundError: If the object does not exist
            RangeReadError: If the range is invalid or the read fails
        """
        if offset < 0 or length < 0:
            raise RangeReadError(key, offset, length, "negative offset or length")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        path = self._path(key)
        try:
            handle = path.open("rb")
        except FileNotFoundError as e:
            raise StoreNotFoundError(key) from e
        except OSError as e:
            raise RangeReadError(key, offset, length, str(e)) from e

        with handle:
            try:
                size = path.stat().st_size
                if offset + length > size:
                    raise RangeReadError(
                        key, offset, length, f"range exceeds object size {size}"
                    )
                handle.seek(offset)
            except OSError as e:
                raise RangeReadError(key, offset, length, str(e)) from e

            stream = _iter_chunks(handle, key, offset, length, chunk_size)
            try:
                yield stream
            finally:
                stream.close()


def _iter_chunks(
    handle: BinaryIO,
    key: str,
    offset: int,
    length: int,
    chunk_size: int,
) -> Iterator[bytes]:
    remaining = length
    while remaining > 0:
        try:
            chunk = handle.read(min(chunk_size, remaining))
        except OSError as e:
            raise RangeReadError(key, offset, length, str(e)) from e
        if not chunk:
            raise RangeReadError(
                key, offset, length, f"short read, {remaining} bytes missing"
            )
        remaining -= len(chunk)
        yield chunk
