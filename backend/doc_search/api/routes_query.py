"""Search API routes."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from doc_search.api.dependencies import get_app_settings, get_search_service
from doc_search.core.config import Settings
from doc_search.models.dto import SearchResponse
from doc_search.retrieval.search import SearchService

router = APIRouter()


@router.get("/search", response_model=SearchResponse, summary="Search the documentation")
async def run_search(
    query: str = Query(..., min_length=1, description="Search query"),
    limit: int | None = Query(None, ge=1, le=100, description="Defaults to the configured default_limit"),
    search_type: Literal["keyword", "semantic", "hybrid"] = Query("hybrid"),
    service: SearchService = Depends(get_search_service),
    settings: Settings = Depends(get_app_settings),
) -> SearchResponse:
    payload = service.search(query, limit=limit or settings.default_limit, search_type=search_type)
    return SearchResponse(**payload)
