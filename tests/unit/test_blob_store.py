"""Unit tests for FileBlobStore."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from slice_search.services.blob_store import FileBlobStore
from slice_search.services.errors import RangeReadError, StoreNotFoundError

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def blob_store(tmp_path: Path) -> FileBlobStore:
    """Empty store in a temporary directory."""
    return FileBlobStore(root_dir=tmp_path / "store")


@pytest.mark.unit
class TestFileBlobStore:
    """Tests for whole-object operations."""

    def test_creates_root(self, tmp_path: Path) -> None:
        """The root directory is created on demand."""
        FileBlobStore(root_dir=tmp_path / "a" / "b")

        assert (tmp_path / "a" / "b").is_dir()

    def test_put_and_get(self, blob_store: FileBlobStore) -> None:
        """Store and retrieve an object."""
        blob_store.put("metadata.json", b'{"dim": 3}')

        assert blob_store.get("metadata.json") == b'{"dim": 3}'

    def test_get_missing_returns_none(self, blob_store: FileBlobStore) -> None:
        """Getting a non-existent key returns None."""
        assert blob_store.get("nonexistent") is None

    def test_head(self, blob_store: FileBlobStore) -> None:
        """Head reports the object size."""
        blob_store.put("embeddings.bin", b"\x00" * 48)

        head = blob_store.head("embeddings.bin")

        assert head is not None
        assert head.size == 48
        assert head.key == "embeddings.bin"

    def test_head_missing_returns_none(self, blob_store: FileBlobStore) -> None:
        """Head of a missing object is None."""
        assert blob_store.head("embeddings.bin") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", ".hidden", ""])
    def test_rejects_unsafe_keys(self, blob_store: FileBlobStore, key: str) -> None:
        """Keys cannot traverse out of the root."""
        with pytest.raises(ValueError, match="Invalid object key"):
            blob_store.get(key)


@pytest.mark.unit
class TestOpenRange:
    """Tests for ranged reads."""

    def test_reads_exact_range_in_chunks(self, blob_store: FileBlobStore) -> None:
        """The range is delivered in chunks no larger than chunk_size."""
        blob_store.put("blob", bytes(range(100)))

        with blob_store.open_range("blob", offset=10, length=25, chunk_size=8) as chunks:
            received = list(chunks)

        assert [len(c) for c in received] == [8, 8, 8, 1]
        assert b"".join(received) == bytes(range(10, 35))

    def test_zero_length_range(self, blob_store: FileBlobStore) -> None:
        """An empty range yields no chunks."""
        blob_store.put("blob", b"abc")

        with blob_store.open_range("blob", offset=3, length=0, chunk_size=8) as chunks:
            assert list(chunks) == []

    def test_missing_object_raises(self, blob_store: FileBlobStore) -> None:
        """A missing object raises StoreNotFoundError."""
        with (
            pytest.raises(StoreNotFoundError) as exc_info,
            blob_store.open_range("embeddings.bin", 0, 12, 8),
        ):
            pass

        assert exc_info.value.key == "embeddings.bin"

    def test_range_past_end_raises(self, blob_store: FileBlobStore) -> None:
        """Ranges beyond the object end fail before reading."""
        blob_store.put("blob", b"\x00" * 20)

        with pytest.raises(RangeReadError, match="exceeds object size 20"), blob_store.open_range(
            "blob", offset=12, length=12, chunk_size=8
        ):
            pass

    def test_negative_offset_raises(self, blob_store: FileBlobStore) -> None:
        """Negative offsets are rejected."""
        blob_store.put("blob", b"\x00" * 20)

        with pytest.raises(RangeReadError), blob_store.open_range("blob", -1, 4, 8):
            pass

    def test_short_read_raises(self, blob_store: FileBlobStore, tmp_path: Path) -> None:
        """An object that shrinks mid-read is reported as a short read."""
        blob_store.put("blob", b"\x00" * 40)

        with blob_store.open_range("blob", offset=0, length=40, chunk_size=16) as chunks:
            first = next(chunks)
            (tmp_path / "store" / "blob").write_bytes(b"\x00" * 20)
            with pytest.raises(RangeReadError, match="short read"):
                list(chunks)

        assert len(first) == 16

    def test_handle_released_on_early_exit(self, blob_store: FileBlobStore) -> None:
        """Leaving the context without consuming the stream closes the file."""
        blob_store.put("blob", b"\x00" * 40)

        with blob_store.open_range("blob", 0, 40, 8) as chunks:
            next(chunks)

        with pytest.raises(StopIteration):
            next(chunks)
