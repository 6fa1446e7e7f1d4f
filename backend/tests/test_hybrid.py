"""Tests for hybrid result fusion."""

from __future__ import annotations

import pytest

from doc_search.db.document_store import DocumentStore
from doc_search.retrieval.hybrid import KEYWORD_WEIGHT, SEMANTIC_WEIGHT, HybridRanker, fuse_results
from doc_search.retrieval.vector_index import SearchResult, VectorIndex


def _hit(chapter_id: int, similarity: float, search_type: str = "semantic") -> SearchResult:
    return SearchResult(chapter_id=chapter_id, title=f"Chapter {chapter_id}", similarity=similarity, search_type=search_type)


def test_fuse_results_weights_and_tags() -> None:
    semantic = [_hit(1, 0.9), _hit(2, 0.5)]
    keyword = [_hit(2, 1.0, "keyword"), _hit(3, 0.5, "keyword")]

    fused = {result.chapter_id: result for result in fuse_results(semantic, keyword, limit=10)}

    assert fused[1].search_type == "semantic"
    assert fused[1].final_score == pytest.approx(0.9 * SEMANTIC_WEIGHT)
    assert fused[2].search_type == "hybrid"
    assert fused[2].final_score == pytest.approx(0.5 * SEMANTIC_WEIGHT + 1.0 * KEYWORD_WEIGHT)
    assert fused[3].search_type == "keyword"
    assert fused[3].final_score == pytest.approx(0.5 * KEYWORD_WEIGHT)


def test_fuse_results_orders_and_truncates() -> None:
    semantic = [_hit(1, 0.9), _hit(2, 0.5)]
    keyword = [_hit(2, 1.0, "keyword"), _hit(3, 0.5, "keyword")]

    fused = fuse_results(semantic, keyword, limit=2)
    assert [result.chapter_id for result in fused] == [2, 1]
    assert semantic[1].final_score is None


def test_disjoint_inputs_keep_relative_order() -> None:
    fused = fuse_results([_hit(1, 0.8), _hit(2, 0.4)], [_hit(3, 0.9, "keyword"), _hit(4, 0.3, "keyword")], limit=10)
    order = [result.chapter_id for result in fused]
    assert order.index(1) < order.index(2)
    assert order.index(3) < order.index(4)
    assert fuse_results([], [], limit=5) == []


def test_hybrid_search_returns_semantic_and_keyword_only_hits(
    store: DocumentStore, vector_index: VectorIndex
) -> None:
    store.upsert_chapter({"chapter_id": 1, "title": "Storage rules", "content": "warehouse warehouse"})
    for chapter_id, title in ((2, "Alpha"), (3, "Beta"), (4, "Gamma")):
        store.upsert_chapter({"chapter_id": chapter_id, "title": title, "content": "plain notes"})
    store.upsert_chapter({"chapter_id": 5, "title": "Zebra crossing", "content": "plain notes"})
    vector_index.build(store.iter_chapters())

    results = HybridRanker(vector_index).hybrid_search("warehouse zebra", limit=2)

    assert [(result.chapter_id, result.search_type) for result in results] == [(1, "semantic"), (5, "keyword")]
    assert results[0].final_score == pytest.approx(SEMANTIC_WEIGHT)
    assert results[1].final_score == pytest.approx(0.5 * KEYWORD_WEIGHT)
