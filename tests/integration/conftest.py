"""
Shared fixtures for integration tests.

Integration tests run the real application, configured from a YAML file
through CONFIG_PATH, against a file store seeded with random unit vectors.
The embedding provider is mocked with respx where a test sends query text.
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING

import httpx
import numpy as np
import pytest
import respx
from fastapi.testclient import TestClient

from slice_search.app import create_app
from slice_search.config import clear_settings_cache
from slice_search.core.state import reset_app_state
from slice_search.logging import PACKAGE_LOGGER
from slice_search.services.blob_store import FileBlobStore
from tests.factories import create_unit_vectors, pack_vectors

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

SERVICE_NAME = "slice-search-integration"
DIMENSION = 16
TOTAL_VECTORS = 500
SLICE_SIZE = 64
EMBEDDINGS_URL = "http://localhost:8011/v1"

CONFIG_TEMPLATE = """
service:
  name: {service_name}
  version: "0.1.0"
store:
  path: {store_path}
  vectors_key: embeddings.bin
  metadata_key: metadata.json
  chunk_size_bytes: 100
collection:
  default_dimension: {dimension}
search:
  default_k: 10
  max_k: 100
  slice_size: {slice_size}
  strict_records: true
  unit_norm_tolerance: 0.0001
embeddings:
  base_url: {embeddings_url}
  model: test-model
  api_key: sk-integration
  timeout_seconds: 2
server:
  host: 127.0.0.1
  port: 8005
logging:
  level: INFO
  format: json
"""


def _reset_loggers() -> None:
    for name in (SERVICE_NAME, PACKAGE_LOGGER):
        configured = logging.getLogger(name)
        configured.handlers.clear()
        configured.setLevel(logging.NOTSET)
        configured.propagate = True


@pytest.fixture(scope="module")
def collection_vectors() -> np.ndarray:
    """The vectors stored in the integration collection."""
    return create_unit_vectors(TOTAL_VECTORS, DIMENSION, seed=1234)


@pytest.fixture(scope="module")
def store_root(
    tmp_path_factory: pytest.TempPathFactory,
    collection_vectors: np.ndarray,
) -> Path:
    """Store directory seeded with the collection and its metadata."""
    root = tmp_path_factory.mktemp("store")
    store = FileBlobStore(root_dir=root)
    store.put("embeddings.bin", pack_vectors(collection_vectors))
    store.put(
        "metadata.json",
        json.dumps({"dim": DIMENSION, "total_vectors": TOTAL_VECTORS}).encode(),
    )
    return root


@pytest.fixture(scope="module")
def integration_client(
    tmp_path_factory: pytest.TempPathFactory,
    store_root: Path,
) -> Iterator[TestClient]:
    """
    Create test client with the real application.

    Uses context manager to trigger lifespan events. The client is shared
    across all tests in the module.
    """
    config_file = tmp_path_factory.mktemp("config") / "config.yaml"
    config_file.write_text(
        CONFIG_TEMPLATE.format(
            service_name=SERVICE_NAME,
            store_path=store_root,
            dimension=DIMENSION,
            slice_size=SLICE_SIZE,
            embeddings_url=EMBEDDINGS_URL,
        )
    )

    previous = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(config_file)
    clear_settings_cache()
    reset_app_state()
    try:
        with TestClient(create_app()) as test_client:
            yield test_client
    finally:
        if previous is None:
            os.environ.pop("CONFIG_PATH", None)
        else:
            os.environ["CONFIG_PATH"] = previous
        clear_settings_cache()
        reset_app_state()
        _reset_loggers()


@pytest.fixture
def client(integration_client: TestClient) -> TestClient:
    """Alias for the shared integration client."""
    return integration_client


@pytest.fixture
def mock_embedding_provider(collection_vectors: np.ndarray) -> Iterator[respx.MockRouter]:
    """
    Mock the embeddings endpoint.

    Every query text embeds to stored vector 42, so it must rank first.
    """
    payload = {
        "data": [{"embedding": collection_vectors[42].astype(np.float64).tolist(), "index": 0}],
        "model": "test-model",
    }
    with respx.mock(assert_all_mocked=False, assert_all_called=False) as router:
        router.post(f"{EMBEDDINGS_URL}/embeddings", name="embeddings").mock(
            return_value=httpx.Response(200, json=payload)
        )
        yield router
