"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from doc_search.core.config import Settings, get_settings
from doc_search.db.document_store import DocumentStore
from doc_search.ingest.embeddings import Embedder, build_embedder
from doc_search.ingest.importer import ChapterImporter
from doc_search.retrieval import HybridRanker, SearchService, VectorIndex

_STORE: DocumentStore | None = None
_EMBEDDER: Embedder | None = None
_VECTOR_INDEX: VectorIndex | None = None
_SEARCH_SERVICE: SearchService | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_document_store() -> DocumentStore:
    global _STORE
    if _STORE is None:
        settings = get_app_settings()
        _STORE = DocumentStore(settings.data_dir).open()
    return _STORE


def get_embedder() -> Embedder:
    global _EMBEDDER
    if _EMBEDDER is None:
        _EMBEDDER = build_embedder(get_app_settings())
    return _EMBEDDER


def get_vector_index() -> VectorIndex:
    global _VECTOR_INDEX
    if _VECTOR_INDEX is None:
        settings = get_app_settings()
        index = VectorIndex(get_embedder(), settings.embeddings_path)
        index.load()
        _VECTOR_INDEX = index
    return _VECTOR_INDEX


def get_search_service() -> SearchService:
    global _SEARCH_SERVICE
    if _SEARCH_SERVICE is None:
        vector_index = get_vector_index()
        _SEARCH_SERVICE = SearchService(
            store=get_document_store(),
            vector_index=vector_index,
            ranker=HybridRanker(vector_index),
        )
    return _SEARCH_SERVICE


def get_importer() -> ChapterImporter:
    return ChapterImporter(get_document_store())


def shutdown() -> None:
    """Flush snapshots of the singletons that were created."""
    if _STORE is not None:
        _STORE.close()


__all__ = [
    "get_app_settings",
    "get_document_store",
    "get_embedder",
    "get_vector_index",
    "get_search_service",
    "get_importer",
    "shutdown",
]
