"""
Bounded top-k selection.

`TopKSelector` keeps the k best candidates of a stream in a min-heap whose
root is the weakest retained candidate. Memory stays O(k) no matter how
many candidates are pushed.
"""

from __future__ import annotations

import heapq
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    import numpy as np


@dataclass(frozen=True, order=True)
class ScoredCandidate:
    """A vector index with its similarity to the query."""

    index: int
    similarity: float


def _rank_key(candidate: ScoredCandidate) -> tuple[float, int]:
    """Best first: higher similarity, then lower index."""
    return -candidate.similarity, candidate.index


class TopKSelector:
    """
    Fixed-capacity selector of the k highest-similarity candidates.

    A candidate that only ties the weakest retained similarity is discarded,
    so earlier (lower-index) candidates win ties. Among retained ties the
    highest index sits at the root and is evicted first.

    The selector is single use: `drain` consumes it.
    """

    def __init__(self, k: int) -> None:
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        # Entries are (similarity, -index, candidate)
        self._heap: list[tuple[float, int, ScoredCandidate]] = []
        self._drained = False

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def threshold(self) -> float | None:
        """Similarity a new candidate must beat once full, else None."""
        if len(self._heap) < self.k:
            return None
        return self._heap[0][0]

    def push(self, candidate: ScoredCandidate) -> bool:
        """
        Offer a candidate.

        Returns:
            True if the candidate was retained

        Raises:
            ValueError: If the similarity is NaN
        """
        if self._drained:
            raise RuntimeError("Selector already drained")
        if math.isnan(candidate.similarity):
            raise ValueError(f"NaN similarity for index {candidate.index}")

        entry = (candidate.similarity, -candidate.index, candidate)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True
        if candidate.similarity > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def push_many(self, indices: np.ndarray, similarities: np.ndarray) -> None:
        """
        Offer a scored batch in index order.

        Once the selector is full, rows that cannot beat the current
        threshold are dropped with one vectorized comparison before any
        candidate objects are built. The threshold only rises while the
        batch is pushed, so the result matches pushing every row.
        """
        if len(indices) != len(similarities):
            raise ValueError(
                f"indices and similarities differ in length: {len(indices)} != {len(similarities)}"
            )
        threshold = self.threshold
        if threshold is not None:
            keep = similarities > threshold
            indices, similarities = indices[keep], similarities[keep]
        for index, similarity in zip(indices.tolist(), similarities.tolist(), strict=True):
            self.push(ScoredCandidate(index=int(index), similarity=float(similarity)))

    def drain(self) -> list[ScoredCandidate]:
        """
        Return retained candidates, best first, and consume the selector.

        Order is descending similarity, ties by ascending index.
        """
        if self._drained:
            raise RuntimeError("Selector already drained")
        self._drained = True
        candidates = [entry[2] for entry in self._heap]
        self._heap = []
        return sorted(candidates, key=_rank_key)


def merge_top_k(results: Iterable[list[ScoredCandidate]], k: int) -> list[ScoredCandidate]:
    """
    Merge per-slice top-k lists into a global top-k.

    Candidates go through one more TopKSelector in rank order, so ties
    resolve towards lower indices exactly as a single scan would.

    Args:
        results: Top-k lists from disjoint slices
        k: Size of the merged result

    Returns:
        Merged candidates, best first
    """
    selector = TopKSelector(k)
    pooled = sorted((c for result in results for c in result), key=_rank_key)
    for candidate in pooled:
        if not selector.push(candidate):
            # Pooled is in rank order, nothing after this can get in
            break
    return selector.drain()
