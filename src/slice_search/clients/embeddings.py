"""
Client for an OpenAI-compatible embeddings API.

Turns query text into a vector. The slice search engine only ever sees the
resulting numbers; dimension checks happen there.
"""

from __future__ import annotations

import json

import httpx

from slice_search.core.exceptions import EmbeddingProviderError
from slice_search.logging import get_logger


class EmbeddingClient:
    """
    Client for the embedding provider.

    Sends `POST /embeddings` with `{"model", "input"}` and reads
    `data[0].embedding` from the response.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str,
        timeout: float,
    ) -> None:
        """
        Initialize the embedding client.

        Args:
            base_url: Provider base URL (e.g., "https://api.openai.com/v1")
            model: Embedding model name
            api_key: Bearer token for the provider
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=5.0),
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def embed(self, text: str) -> list[float]:
        """
        Embed query text.

        Args:
            text: Non-empty query text

        Returns:
            Embedding vector as list of floats

        Raises:
            EmbeddingProviderError: If the provider fails or returns garbage
        """
        logger = get_logger("embeddings")

        try:
            response = await self.client.post(
                "/embeddings",
                json={"model": self.model, "input": text},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            logger.warning(
                "Embedding provider timeout",
                extra={"base_url": self.base_url, "timeout": self.timeout},
            )
            raise EmbeddingProviderError(
                error="embedding_timeout",
                message="Embedding provider timed out",
                status_code=504,
                details={"timeout_seconds": self.timeout},
            ) from e
        except httpx.ConnectError as e:
            logger.warning(
                "Embedding provider unavailable",
                extra={"base_url": self.base_url},
            )
            raise EmbeddingProviderError(
                error="embedding_unavailable",
                message="Embedding provider is not responding",
                status_code=502,
                details={"url": self.base_url},
            ) from e
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Embedding provider error",
                extra={
                    "status_code": e.response.status_code,
                    "body": e.response.text[:500],
                },
            )
            raise EmbeddingProviderError(
                error="embedding_error",
                message=f"Embedding provider returned HTTP {e.response.status_code}",
                status_code=502,
                details={"provider_status_code": e.response.status_code},
            ) from e
        except json.JSONDecodeError as e:
            raise EmbeddingProviderError(
                error="invalid_response",
                message="Embedding provider returned invalid JSON response",
                status_code=502,
                details={},
            ) from e

        embedding = _extract_embedding(payload)
        logger.debug("Embedded query", extra={"dimension": len(embedding)})
        return embedding


def _extract_embedding(payload: object) -> list[float]:
    """Pull `data[0].embedding` out of a provider response."""
    try:
        embedding = payload["data"][0]["embedding"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError) as e:
        raise EmbeddingProviderError(
            error="invalid_response",
            message="Embedding provider response has no data[0].embedding",
            status_code=502,
            details={},
        ) from e

    if not isinstance(embedding, list) or len(embedding) == 0:
        raise EmbeddingProviderError(
            error="empty_embedding",
            message="Embedding provider returned an empty or non-list embedding",
            status_code=502,
            details={"embedding_type": type(embedding).__name__},
        )

    try:
        return [float(x) for x in embedding]
    except (ValueError, TypeError) as e:
        raise EmbeddingProviderError(
            error="invalid_response",
            message=f"Embedding provider returned non-numeric values: {e}",
            status_code=502,
            details={},
        ) from e
