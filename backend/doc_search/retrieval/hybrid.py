"""Hybrid search utilities."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from doc_search.retrieval.vector_index import SearchResult, VectorIndex

SEMANTIC_WEIGHT = 0.7
KEYWORD_WEIGHT = 0.3
OVERSAMPLE_FACTOR = 2


def fuse_results(
    semantic_results: Sequence[SearchResult],
    keyword_results: Sequence[SearchResult],
    limit: int,
) -> list[SearchResult]:
    """Blend semantic and keyword hits with fixed weights.

    Semantic hits seed the ranking with ``0.7 * similarity``. A keyword hit
    for a chapter already present adds ``0.3 * similarity`` and turns the
    entry into a ``hybrid`` hit; otherwise it is inserted as a ``keyword``
    hit scored ``0.3 * similarity``.
    """
    combined: dict[int, SearchResult] = {}
    for result in semantic_results:
        combined[result.chapter_id] = replace(
            result,
            final_score=result.similarity * SEMANTIC_WEIGHT,
            search_type="semantic",
        )
    for result in keyword_results:
        existing = combined.get(result.chapter_id)
        if existing is not None:
            existing.final_score = (existing.final_score or 0.0) + result.similarity * KEYWORD_WEIGHT
            existing.search_type = "hybrid"
        else:
            combined[result.chapter_id] = replace(
                result,
                final_score=result.similarity * KEYWORD_WEIGHT,
                search_type="keyword",
            )
    fused = sorted(combined.values(), key=lambda item: item.final_score or 0.0, reverse=True)
    return fused[: max(limit, 0)]


class HybridRanker:
    """Runs semantic and title-keyword search on a vector index and fuses them."""

    def __init__(self, vector_index: VectorIndex) -> None:
        self.vector_index = vector_index

    def hybrid_search(self, query: str, limit: int = 10) -> list[SearchResult]:
        candidates = limit * OVERSAMPLE_FACTOR
        semantic = self.vector_index.semantic_search(query, candidates)
        keyword = self.vector_index.keyword_search(query, candidates)
        return fuse_results(semantic, keyword, limit)


__all__ = ["fuse_results", "HybridRanker", "SEMANTIC_WEIGHT", "KEYWORD_WEIGHT"]
