"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ContentPayload = str | list[Any]


class ChapterUpdateRequest(BaseModel):
    title: str = Field(min_length=1)
    content: ContentPayload = ""
    page_start: int = Field(default=0, ge=0)
    content_lines: int | None = Field(default=None, ge=0, description="Derived from content when omitted")
    images_count: int = Field(default=0, ge=0)
    tables_count: int = Field(default=0, ge=0)


class ChapterCreateRequest(ChapterUpdateRequest):
    chapter_id: int


class ChapterResponse(BaseModel):
    id: int
    chapter_id: int
    title: str
    content: ContentPayload
    page_start: int
    content_lines: int
    images_count: int
    tables_count: int
    created_at: str
    updated_at: str


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ChapterListResponse(BaseModel):
    chapters: list[ChapterResponse]
    pagination: PaginationResponse


class BulkChaptersRequest(BaseModel):
    chapters: list[dict[str, Any]]


class BulkChaptersResponse(BaseModel):
    total: int
    success_count: int
    error_count: int
    errors: list[str] | None = None


class MessageResponse(BaseModel):
    status: Literal["ok"] = "ok"
    message: str


class SearchResponse(BaseModel):
    query: str
    search_type: Literal["keyword", "semantic", "hybrid"]
    search_method: str
    total: int
    results: list[dict[str, Any]]


class StatisticsResponse(BaseModel):
    total_chapters: int
    chapters_with_content: int
    chapters_with_tables: int
    chapters_with_images: int
    total_content_lines: int
    total_tables: int
    total_images: int
    vector: dict[str, Any] | None = None


class DocumentInfoResponse(BaseModel):
    title: str
    page_count: int | None = None
    file_size: int | None = None
    total_chapters: int | None = None
    chapters_with_content: int | None = None


class ImportRequest(BaseModel):
    paths: list[str] | None = Field(default=None, description="Structure files or directories; defaults to import_dir")


class ImportResponse(BaseModel):
    stats: dict[str, int]
    results: list[dict[str, Any]]


class EmbeddingBuildResponse(BaseModel):
    total: int
    processed: int
    errors: int


class EmbeddingStatsResponse(BaseModel):
    total_embeddings: int
    is_initialized: bool
    model_info: dict[str, Any]


__all__ = [
    "ChapterCreateRequest",
    "ChapterUpdateRequest",
    "ChapterResponse",
    "ChapterListResponse",
    "PaginationResponse",
    "BulkChaptersRequest",
    "BulkChaptersResponse",
    "MessageResponse",
    "SearchResponse",
    "StatisticsResponse",
    "DocumentInfoResponse",
    "ImportRequest",
    "ImportResponse",
    "EmbeddingBuildResponse",
    "EmbeddingStatsResponse",
]
