"""
Slice Search Service - streaming similarity search over a flat vector blob.

Scans byte ranges of a float32 embedding blob and returns the top-k most
similar vector indices per slice, without loading the blob into memory.
"""

from __future__ import annotations
