"""
Shared fixtures for unit tests.

Settings are built in memory and patched into every module that reads
them, the blob store lives in tmp_path, and the embedding provider is
mocked so tests run without network access.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from slice_search.config import Settings
from slice_search.core.state import reset_app_state
from slice_search.services.blob_store import FileBlobStore

if TYPE_CHECKING:
    from collections.abc import Iterator

# Modules that bind get_settings at import time
_SETTINGS_CONSUMERS = (
    "slice_search.config.get_settings",
    "slice_search.app.get_settings",
    "slice_search.core.lifespan.get_settings",
    "slice_search.routers.health.get_settings",
    "slice_search.routers.info.get_settings",
    "slice_search.routers.meta.get_settings",
    "slice_search.routers.search.get_settings",
)


def build_settings(store_path: Path, **search_overrides: Any) -> Settings:
    """Create valid settings for a 3-d collection stored at store_path."""
    search: dict[str, Any] = {
        "default_k": 2,
        "max_k": 50,
        "slice_size": 2,
        "strict_records": True,
        "unit_norm_tolerance": None,
    }
    search.update(search_overrides)
    return Settings(
        service={"name": "slice-search-test", "version": "0.1.0"},
        store={
            "path": str(store_path),
            "vectors_key": "embeddings.bin",
            "metadata_key": "metadata.json",
            "chunk_size_bytes": 7,
        },
        collection={"default_dimension": 3},
        search=search,
        embeddings={
            "base_url": "http://embeddings.test/v1",
            "model": "test-model",
            "api_key": "sk-test",
            "timeout_seconds": 5.0,
        },
        server={"host": "127.0.0.1", "port": 8005},
        logging={"level": "INFO", "format": "json"},
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """In-memory settings pointing at a temporary store."""
    return build_settings(tmp_path / "store")


@pytest.fixture
def store(settings: Settings) -> FileBlobStore:
    """Blob store backing the app under test."""
    return FileBlobStore(root_dir=Path(settings.store.path))


@pytest.fixture
def mock_embedding_client() -> MagicMock:
    """Embedding client that always returns [2, 0, 0]."""
    client = MagicMock()
    client.embed = AsyncMock(return_value=[2.0, 0.0, 0.0])
    client.close = AsyncMock()
    return client


@pytest.fixture
def client(
    settings: Settings,
    store: FileBlobStore,
    mock_embedding_client: MagicMock,
) -> Iterator[TestClient]:
    """
    Test client running the real lifespan against the temporary store.

    Logging setup is patched out so pytest's log capture keeps working.
    """
    patches = [patch(target, return_value=settings) for target in _SETTINGS_CONSUMERS]
    patches.append(patch("slice_search.core.lifespan.setup_logging"))
    patches.append(
        patch(
            "slice_search.core.lifespan.create_embedding_client",
            return_value=mock_embedding_client,
        )
    )
    for p in patches:
        p.start()
    try:
        from slice_search.app import create_app  # noqa: PLC0415

        with TestClient(create_app(), raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        for p in reversed(patches):
            p.stop()
        reset_app_state()
