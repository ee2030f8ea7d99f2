"""
API routers for the slice search service.

Each router handles a specific domain of endpoints.
"""

from __future__ import annotations

from . import health, info, meta, search

__all__ = ["health", "info", "meta", "search"]
