"""Tests for the chapter vector index."""

from __future__ import annotations

import orjson
import pytest

from doc_search.db.document_store import DocumentStore
from doc_search.ingest.embeddings import HashEmbedder
from doc_search.retrieval.vector_index import IndexNotReadyError, VectorIndex


@pytest.fixture
def populated(store: DocumentStore) -> DocumentStore:
    store.upsert_chapter({"chapter_id": 1, "title": "Receiving goods", "content": "warehouse receiving goods"})
    store.upsert_chapter({"chapter_id": 2, "title": "Printing setup", "content": "printer label barcode"})
    store.upsert_chapter({"chapter_id": 3, "title": "Goods report", "content": "report statistics export"})
    return store


def test_not_ready_index_raises(vector_index: VectorIndex) -> None:
    assert not vector_index.is_ready
    with pytest.raises(IndexNotReadyError):
        vector_index.semantic_search("warehouse")
    with pytest.raises(IndexNotReadyError):
        vector_index.keyword_search("warehouse")
    with pytest.raises(IndexNotReadyError):
        vector_index.get_vector(1)
    with pytest.raises(IndexNotReadyError):
        vector_index.add_or_update(1, "Title", "body")


def test_build_and_semantic_search(vector_index: VectorIndex, populated: DocumentStore) -> None:
    report = vector_index.build(populated.iter_chapters())
    assert report.to_dict() == {"total": 3, "processed": 3, "errors": 0}
    assert vector_index.is_ready
    assert vector_index.size == 3

    results = vector_index.semantic_search("printer barcode label", limit=2)
    assert len(results) == 2
    assert results[0].chapter_id == 2
    assert results[0].similarity == pytest.approx(1.0)
    assert results[0].search_type == "semantic"
    assert results[0].metadata["chapter_id"] == 2


def test_build_counts_embedding_errors(vector_index: VectorIndex, populated: DocumentStore) -> None:
    class FlakyEmbedder(HashEmbedder):
        def embed_chapter(self, chapter):
            if chapter.chapter_id == 2:
                raise RuntimeError("boom")
            return super().embed_chapter(chapter)

    report = vector_index.build(populated.iter_chapters(), embedder=FlakyEmbedder())
    assert report.to_dict() == {"total": 3, "processed": 2, "errors": 1}
    assert vector_index.is_ready
    assert vector_index.get_vector(2) is None


def test_keyword_search_scores_title_fraction(vector_index: VectorIndex, populated: DocumentStore) -> None:
    vector_index.build(populated.iter_chapters())

    results = vector_index.keyword_search("receiving goods")
    scores = {result.chapter_id: result.similarity for result in results}
    assert scores == {1: 1.0, 3: 0.5}
    assert results[0].chapter_id == 1
    assert all(result.search_type == "keyword" for result in results)
    assert vector_index.keyword_search("   ") == []


def test_persist_and_load(vector_index: VectorIndex, populated: DocumentStore, embedder: HashEmbedder) -> None:
    vector_index.build(populated.iter_chapters())
    snapshot = orjson.loads(vector_index._snapshot.path.read_bytes())
    assert snapshot["metadata"]["total_embeddings"] == 3
    assert snapshot["metadata"]["model"]["name"] == "Simple-Hash-Based-Embeddings"

    reloaded = VectorIndex(embedder, vector_index._snapshot.path)
    assert reloaded.load()
    assert reloaded.is_ready
    assert reloaded.get_vector(1).embedding == vector_index.get_vector(1).embedding


def test_load_missing_or_mismatched_snapshot(vector_index: VectorIndex, populated: DocumentStore) -> None:
    assert not vector_index.load()
    assert not vector_index.is_ready

    vector_index.build(populated.iter_chapters())
    smaller = VectorIndex(HashEmbedder(dim=16), vector_index._snapshot.path)
    assert not smaller.load()
    assert not smaller.is_ready


def test_add_or_update_and_remove(vector_index: VectorIndex, populated: DocumentStore, embedder: HashEmbedder) -> None:
    vector_index.build(populated.iter_chapters())

    assert vector_index.add_or_update(4, "Scanner", "scanner synchronization")
    record = vector_index.get_vector(4)
    assert record.title == "Scanner"
    assert record.embedding == embedder.embed("Scanner\n\nscanner synchronization")

    assert vector_index.remove(4)
    assert vector_index.get_vector(4) is None
    assert not vector_index.remove(4)
    assert vector_index.statistics()["total_embeddings"] == 3


def test_persist_failure_returns_false(
    vector_index: VectorIndex, populated: DocumentStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    vector_index.build(populated.iter_chapters())

    def failing_replace(src: str, dst: str) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("doc_search.db.snapshots.os.replace", failing_replace)

    assert vector_index.persist() is False
    assert vector_index.add_or_update(4, "Scanner", "scanner") is False
    assert vector_index.get_vector(4) is not None
