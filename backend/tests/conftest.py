"""Test fixtures for the documentation search service."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


def _reset_dependencies() -> None:
    from doc_search.api import dependencies as deps
    from doc_search.core import config

    config.get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._STORE = None
    deps._EMBEDDER = None
    deps._VECTOR_INDEX = None
    deps._SEARCH_SERVICE = None


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("DOCS_DATA_DIR", str(tmp_path / "db"))
    monkeypatch.delenv("DOCS_CONFIG", raising=False)
    monkeypatch.delenv("DOCS_IMPORT_DIR", raising=False)
    monkeypatch.delenv("DOCS_EMBEDDING_BACKEND", raising=False)
    _reset_dependencies()
    yield
    _reset_dependencies()


@pytest.fixture
def store(tmp_path: Path):
    from doc_search.db.document_store import DocumentStore

    return DocumentStore(tmp_path / "store").open()


@pytest.fixture
def embedder():
    from doc_search.ingest.embeddings import HashEmbedder

    return HashEmbedder()


@pytest.fixture
def vector_index(tmp_path: Path, embedder):
    from doc_search.retrieval.vector_index import VectorIndex

    return VectorIndex(embedder, tmp_path / "vectors" / "embeddings.json")


@pytest.fixture(scope="session")
def receiving_chapter() -> dict:
    return {
        "chapter_id": 1,
        "title": "Receiving goods",
        "content": "Receiving process description",
        "tables_count": 1,
    }
