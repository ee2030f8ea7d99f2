"""
Slice search engine.

Leaf components (normalizer, bounds resolver, record decoder, top-k
selector) and the orchestrator that wires them over a ranged read.
"""

from __future__ import annotations

from slice_search.services.bounds import SliceBounds, resolve_slice_bounds
from slice_search.services.scanner import DecodedBatch, RecordDecoder, scan_records
from slice_search.services.slice_search import (
    SliceDescriptor,
    SliceSearchResult,
    search_collection,
    search_slice,
)
from slice_search.services.topk import ScoredCandidate, TopKSelector, merge_top_k
from slice_search.services.vector_math import normalize_query, score_records

__all__ = [
    "DecodedBatch",
    "RecordDecoder",
    "ScoredCandidate",
    "SliceBounds",
    "SliceDescriptor",
    "SliceSearchResult",
    "TopKSelector",
    "merge_top_k",
    "normalize_query",
    "resolve_slice_bounds",
    "scan_records",
    "score_records",
    "search_collection",
    "search_slice",
]
