"""Administrative routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from doc_search.api.dependencies import get_document_store, get_vector_index
from doc_search.core.metrics import metrics_response
from doc_search.db.document_store import DocumentStore
from doc_search.models.dto import DocumentInfoResponse, EmbeddingStatsResponse, StatisticsResponse
from doc_search.retrieval.vector_index import VectorIndex

router = APIRouter()


@router.get("/api/statistics", response_model=StatisticsResponse, summary="Documentation statistics")
async def get_statistics(
    store: DocumentStore = Depends(get_document_store),
    vector_index: VectorIndex = Depends(get_vector_index),
) -> StatisticsResponse:
    stats = store.get_statistics()
    vector = vector_index.statistics() if vector_index.is_ready else None
    return StatisticsResponse(**stats, vector=vector)


@router.get("/api/document-info", response_model=DocumentInfoResponse, summary="Document level metadata")
async def get_document_info(store: DocumentStore = Depends(get_document_store)) -> DocumentInfoResponse:
    return DocumentInfoResponse(**store.document_info())


@router.get("/api/embeddings/stats", response_model=EmbeddingStatsResponse, summary="Vector index statistics")
async def get_embedding_stats(vector_index: VectorIndex = Depends(get_vector_index)) -> EmbeddingStatsResponse:
    return EmbeddingStatsResponse(**vector_index.statistics())


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
