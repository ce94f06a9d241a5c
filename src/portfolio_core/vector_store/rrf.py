"""
Reciprocal Rank Fusion (RRF).

Merges independently ranked result lists (e.g. a vector search and a
keyword search) into one ranking. Each occurrence of an id at 1-based rank
``r`` in a list with weight ``w`` contributes ``w / (k + r)``; contributions
of the same id are summed.

Every id from every input appears in the output. When an id occurs in more
than one list, the first-seen ``metadata`` and ``payload`` are kept and the
later occurrence only fills in what is missing.

Equal fused scores keep first-seen order: list order first, then rank.

Example:
    >>> a = [SearchResult("id1", 0.9), SearchResult("id2", 0.8)]
    >>> b = [SearchResult("id1", 12.0), SearchResult("id3", 7.5)]
    >>> [r.id for r in fuse(a, b)]
    ['id1', 'id2', 'id3']

Tags:
    portfolio-core, retrieval, ranking, rrf, hybrid-search

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_K = 60


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit."""

    id: Hashable
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
    payload: Any = None


def fuse(
    list_a: Sequence[SearchResult],
    list_b: Sequence[SearchResult],
    k: int = DEFAULT_K,
    weight_a: float = 1.0,
    weight_b: float = 1.0,
) -> list[SearchResult]:
    """Fuse two ranked lists. See :func:`fuse_many`."""
    return fuse_many([list_a, list_b], weights=[weight_a, weight_b], k=k)


def fuse_many(
    lists: Sequence[Sequence[SearchResult]],
    weights: Sequence[float] | None = None,
    k: int = DEFAULT_K,
) -> list[SearchResult]:
    """Fuse any number of ranked lists.

    Args:
        lists: Ranked lists, best hit first
        weights: One weight per list, defaults to 1.0 each
        k: Rank smoothing constant

    Returns:
        New SearchResult objects carrying the fused score, best first

    Raises:
        ValueError: If k is negative or weights do not match lists
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    if weights is None:
        weights = [1.0] * len(lists)
    if len(weights) != len(lists):
        raise ValueError(f"Expected {len(lists)} weights, got {len(weights)}")

    fused: dict[Hashable, SearchResult] = {}
    scores: dict[Hashable, float] = {}
    first_seen: dict[Hashable, int] = {}

    for results, weight in zip(lists, weights):
        for rank, result in enumerate(results, start=1):
            contribution = weight / (k + rank)
            existing = fused.get(result.id)
            if existing is None:
                first_seen[result.id] = len(first_seen)
                fused[result.id] = result
                scores[result.id] = contribution
            else:
                fused[result.id] = _merge(existing, result)
                scores[result.id] += contribution

    ordered = sorted(fused, key=lambda rid: (-scores[rid], first_seen[rid]))
    return [replace(fused[rid], score=scores[rid]) for rid in ordered]


def _merge(existing: SearchResult, incoming: SearchResult) -> SearchResult:
    metadata = existing.metadata if existing.metadata else incoming.metadata
    payload = existing.payload if existing.payload is not None else incoming.payload
    return replace(existing, metadata=metadata, payload=payload)


__all__ = ["DEFAULT_K", "SearchResult", "fuse", "fuse_many"]
