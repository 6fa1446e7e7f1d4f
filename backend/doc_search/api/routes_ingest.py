"""Import and embedding generation routes."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from doc_search.api.dependencies import get_app_settings, get_document_store, get_importer, get_vector_index
from doc_search.core.config import Settings
from doc_search.db.document_store import DocumentStore
from doc_search.ingest.importer import ChapterImporter
from doc_search.ingest.types import ImportStats
from doc_search.models.dto import EmbeddingBuildResponse, ImportRequest, ImportResponse, MessageResponse
from doc_search.retrieval.vector_index import IndexNotReadyError, VectorIndex

router = APIRouter()


@router.post("/import", response_model=ImportResponse, summary="Import structure files")
async def trigger_import(
    request: ImportRequest,
    importer: ChapterImporter = Depends(get_importer),
    settings: Settings = Depends(get_app_settings),
) -> ImportResponse:
    if request.paths:
        paths = [Path(path).expanduser() for path in request.paths]
    elif settings.import_dir is not None:
        paths = [settings.import_dir]
    else:
        raise HTTPException(status_code=400, detail="No paths given and no import_dir configured")
    results = importer.import_paths(paths)
    totals = ImportStats()
    for result in results:
        totals.merge(result.stats)
    return ImportResponse(stats=totals.to_dict(), results=[result.to_dict() for result in results])


@router.post("/embeddings/rebuild", response_model=EmbeddingBuildResponse, summary="Embed every chapter")
async def rebuild_embeddings(
    store: DocumentStore = Depends(get_document_store),
    vector_index: VectorIndex = Depends(get_vector_index),
) -> EmbeddingBuildResponse:
    report = vector_index.build(store.iter_chapters())
    return EmbeddingBuildResponse(**report.to_dict())


@router.put("/embeddings/{chapter_id}", response_model=MessageResponse, summary="Re-embed one chapter")
async def refresh_embedding(
    chapter_id: int,
    store: DocumentStore = Depends(get_document_store),
    vector_index: VectorIndex = Depends(get_vector_index),
) -> MessageResponse:
    chapter = store.get_chapter(chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail="Chapter not found")
    try:
        saved = vector_index.add_or_update(chapter.chapter_id, chapter.title, chapter.content)
    except IndexNotReadyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if not saved:
        raise HTTPException(status_code=500, detail="Failed to persist embeddings")
    return MessageResponse(message=f"Embedding for chapter {chapter_id} refreshed")


__all__ = ["router"]
