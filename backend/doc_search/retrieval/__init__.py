"""Retrieval orchestration components."""

from .vector_index import BuildReport, IndexNotReadyError, SearchResult, VectorIndex
from .hybrid import HybridRanker, fuse_results
from .search import SearchService

__all__ = [
    "VectorIndex",
    "SearchResult",
    "BuildReport",
    "IndexNotReadyError",
    "HybridRanker",
    "fuse_results",
    "SearchService",
]
