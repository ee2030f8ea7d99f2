"""Clients for external collaborators."""

from __future__ import annotations

from slice_search.clients.embeddings import EmbeddingClient

__all__ = ["EmbeddingClient"]
