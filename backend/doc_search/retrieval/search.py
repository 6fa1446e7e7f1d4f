"""Search orchestration."""

from __future__ import annotations

import time
from typing import Any, Literal

from doc_search.core.logging import get_logger
from doc_search.core.metrics import SEARCH_LATENCY
from doc_search.db.document_store import DocumentStore
from doc_search.retrieval.hybrid import HybridRanker
from doc_search.retrieval.vector_index import IndexNotReadyError, VectorIndex

logger = get_logger(__name__)

SearchType = Literal["keyword", "semantic", "hybrid"]


class SearchService:
    """Dispatches a query to the store, the vector index or the hybrid ranker."""

    def __init__(
        self,
        store: DocumentStore,
        vector_index: VectorIndex,
        ranker: HybridRanker | None = None,
    ) -> None:
        self.store = store
        self.vector_index = vector_index
        self.ranker = ranker or HybridRanker(vector_index)

    def search(self, query: str, limit: int = 10, search_type: SearchType = "hybrid") -> dict[str, Any]:
        """Run a query and return serialisable hits.

        ``keyword`` uses the document store's substring search. ``semantic``
        and ``hybrid`` need the vector index; when it is not ready the call
        falls back to the store and reports ``search_method="fallback"``.
        """
        start_time = time.perf_counter()
        method: str = search_type
        try:
            if search_type == "semantic":
                results = [hit.to_dict() for hit in self.vector_index.semantic_search(query, limit)]
            elif search_type == "hybrid":
                results = [hit.to_dict() for hit in self.ranker.hybrid_search(query, limit)]
            else:
                results = self._keyword(query, limit)
        except IndexNotReadyError:
            logger.warning("Vector index not ready; falling back to keyword search for %r", query)
            method = "fallback"
            results = self._keyword(query, limit)
        elapsed = time.perf_counter() - start_time
        SEARCH_LATENCY.labels(search_type=method).observe(elapsed)
        logger.info(
            "Search completed",
            extra={"ctx_query": query, "ctx_search_method": method, "ctx_results": len(results), "ctx_seconds": elapsed},
        )
        return {
            "query": query,
            "search_type": search_type,
            "search_method": method,
            "total": len(results),
            "results": results,
        }

    def _keyword(self, query: str, limit: int) -> list[dict[str, Any]]:
        return [hit.to_dict() for hit in self.store.search_chapters(query, limit)]


__all__ = ["SearchService", "SearchType"]
