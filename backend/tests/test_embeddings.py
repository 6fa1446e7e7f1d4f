"""Tests for embedding utilities."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from doc_search.ingest.embeddings import (
    EMBEDDING_DIMENSION,
    DimensionMismatchError,
    HashEmbedder,
    build_embedder,
    chapter_text,
    cosine_similarity,
    normalize_text,
    term_vector,
)


def test_term_vector_cycles_digest_digits() -> None:
    vector = term_vector("warehouse", 40)
    assert len(vector) == 40
    assert vector[32:] == vector[:8]
    assert all(value * 8 == int(value * 8) and -1.0 <= value <= 0.875 for value in vector)


def test_embedding_is_deterministic(embedder: HashEmbedder) -> None:
    other = HashEmbedder()
    text = "Warehouse receiving: scan the barcode"
    assert embedder.embed(text) == other.embed(text)
    assert len(embedder.embed(text)) == EMBEDDING_DIMENSION


def test_text_without_known_words_embeds_to_zero(embedder: HashEmbedder) -> None:
    assert embedder.embed("lorem ipsum dolor") == [0.0] * EMBEDDING_DIMENSION
    assert embedder.embed("") == [0.0] * EMBEDDING_DIMENSION


def test_unknown_words_do_not_change_embedding(embedder: HashEmbedder) -> None:
    assert embedder.embed("warehouse qwerty, zebra!") == embedder.embed("warehouse")


def test_single_known_word_matches_term_vector(embedder: HashEmbedder) -> None:
    assert embedder.embed("СКЛАД") == term_vector("склад")


def test_normalize_text_strips_punctuation_and_case() -> None:
    assert normalize_text("  Поступление,   ТОВАРА!\n(warehouse) ") == "поступление товара warehouse"


def test_shared_vocabulary_scores_higher(embedder: HashEmbedder) -> None:
    base = embedder.embed("warehouse receiving goods barcode")
    related = embedder.embed("goods receiving at the warehouse")
    unrelated = embedder.embed("printer scanner label")
    assert cosine_similarity(base, related) > cosine_similarity(base, unrelated)


def test_cosine_similarity_properties(embedder: HashEmbedder) -> None:
    a = embedder.embed("warehouse settings")
    b = embedder.embed("printer configuration")
    assert cosine_similarity(a, a) == pytest.approx(1.0)
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
    assert cosine_similarity(a, [0.0] * len(a)) == 0.0
    assert -1.0 <= cosine_similarity(a, b) <= 1.0


def test_cosine_similarity_rejects_mismatched_lengths() -> None:
    with pytest.raises(DimensionMismatchError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_expand_vocabulary_adds_only_new_words(embedder: HashEmbedder) -> None:
    before = embedder.embed("warehouse")
    assert embedder.embed("zebra") == [0.0] * EMBEDDING_DIMENSION
    assert embedder.expand_vocabulary(["Zebra", "warehouse", " "]) == 1
    assert "zebra" in embedder.vocabulary
    assert embedder.embed("zebra") == term_vector("zebra")
    assert embedder.embed("warehouse") == before
    assert embedder.model_info()["vocabularySize"] == len(embedder.vocabulary)


def test_chapter_text_flattens_blocks() -> None:
    text = chapter_text({"title": "Printer", "content": ["setup", {"text": "barcode"}, {"type": "image"}]})
    assert text.startswith("Printer\n\n")
    assert "setup barcode" in text


def test_encode_batches(embedder: HashEmbedder) -> None:
    batch = embedder.encode(["warehouse", "printer"])
    assert len(batch.vectors) == 2
    assert batch.dim == EMBEDDING_DIMENSION
    assert batch.backend == "hashed"


def test_build_embedder_from_settings() -> None:
    settings = SimpleNamespace(embedding_backend="hashed", embedding_dimension=64, extra_vocabulary=["zebra"])
    embedder = build_embedder(settings)
    assert embedder.dim == 64
    assert "zebra" in embedder.vocabulary

    with pytest.raises(ValueError):
        build_embedder(SimpleNamespace(embedding_backend="unknown"))
