"""Fixtures for client unit tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import httpx
import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from slice_search.clients.embeddings import EmbeddingClient


@pytest.fixture
def mock_httpx_client() -> AsyncMock:
    """Create a mock httpx.AsyncClient for testing client methods."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
async def embedding_client(mock_httpx_client: AsyncMock) -> AsyncGenerator[EmbeddingClient, None]:
    """Create an EmbeddingClient with a mocked httpx client."""
    from slice_search.clients.embeddings import EmbeddingClient  # noqa: PLC0415

    client = EmbeddingClient(
        base_url="http://embeddings.test/v1",
        model="test-model",
        api_key="sk-test",
        timeout=5.0,
    )
    real_client = client.client
    # Replace the internal httpx client with our mock
    client.client = mock_httpx_client
    with patch(
        "slice_search.clients.embeddings.get_logger",
        return_value=logging.getLogger("slice-search-test.embeddings"),
    ):
        yield client
    await real_client.aclose()
