"""Chapter CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from doc_search.api.dependencies import get_app_settings, get_document_store, get_vector_index
from doc_search.core.config import Settings
from doc_search.db.document_store import DocumentStore
from doc_search.models.dto import (
    BulkChaptersRequest,
    BulkChaptersResponse,
    ChapterCreateRequest,
    ChapterListResponse,
    ChapterResponse,
    ChapterUpdateRequest,
    MessageResponse,
)
from doc_search.models.entities import Chapter
from doc_search.retrieval.vector_index import VectorIndex

router = APIRouter()


@router.get("/chapters", response_model=ChapterListResponse, summary="List chapters with pagination")
async def list_chapters(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=500, description="Defaults to the configured page_size"),
    search: str | None = Query(None, description="Case-insensitive substring filter"),
    store: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_app_settings),
) -> ChapterListResponse:
    result = store.list_chapters(page=page, limit=limit or settings.page_size, search=search)
    return ChapterListResponse(
        chapters=[_to_response(chapter) for chapter in result.chapters],
        pagination=result.pagination.to_dict(),
    )


@router.get("/chapter/{chapter_id}", response_model=ChapterResponse, summary="Fetch a chapter")
async def get_chapter(chapter_id: int, store: DocumentStore = Depends(get_document_store)) -> ChapterResponse:
    chapter = store.get_chapter(chapter_id)
    if chapter is None:
        raise HTTPException(status_code=404, detail="Chapter not found")
    return _to_response(chapter)


@router.post("/chapter", response_model=MessageResponse, summary="Add a chapter")
async def create_chapter(
    request: ChapterCreateRequest,
    store: DocumentStore = Depends(get_document_store),
) -> MessageResponse:
    if not store.upsert_chapter(request.model_dump()):
        raise HTTPException(status_code=500, detail="Failed to store chapter")
    return MessageResponse(message=f"Chapter {request.chapter_id} stored")


@router.put("/chapter/{chapter_id}", response_model=MessageResponse, summary="Replace a chapter")
async def update_chapter(
    chapter_id: int,
    request: ChapterUpdateRequest,
    store: DocumentStore = Depends(get_document_store),
) -> MessageResponse:
    if not store.upsert_chapter({**request.model_dump(), "chapter_id": chapter_id}):
        raise HTTPException(status_code=500, detail="Failed to store chapter")
    return MessageResponse(message=f"Chapter {chapter_id} updated")


@router.delete("/chapter/{chapter_id}", response_model=MessageResponse, summary="Delete a chapter")
async def delete_chapter(
    chapter_id: int,
    store: DocumentStore = Depends(get_document_store),
    vector_index: VectorIndex = Depends(get_vector_index),
) -> MessageResponse:
    if not store.delete_chapter(chapter_id):
        raise HTTPException(status_code=404, detail="Chapter not found")
    vector_index.remove(chapter_id)
    return MessageResponse(message=f"Chapter {chapter_id} deleted")


@router.post("/chapters/bulk", response_model=BulkChaptersResponse, summary="Add many chapters")
async def bulk_create(
    request: BulkChaptersRequest,
    store: DocumentStore = Depends(get_document_store),
) -> BulkChaptersResponse:
    errors: list[str] = []
    success_count = 0
    for chapter in request.chapters:
        if store.upsert_chapter(chapter):
            success_count += 1
        else:
            errors.append(f"Failed to store chapter {chapter.get('chapter_id')}")
    return BulkChaptersResponse(
        total=len(request.chapters),
        success_count=success_count,
        error_count=len(errors),
        errors=errors or None,
    )


def _to_response(chapter: Chapter) -> ChapterResponse:
    return ChapterResponse(**chapter.to_dict())


__all__ = ["router"]
