"""FastAPI application setup for the documentation search service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from doc_search.api.dependencies import (
    get_app_settings,
    get_document_store,
    get_search_service,
    get_vector_index,
    shutdown,
)
from doc_search.api.routes_admin import router as admin_router
from doc_search.api.routes_chapters import router as chapters_router
from doc_search.api.routes_ingest import router as ingest_router
from doc_search.api.routes_query import router as query_router
from doc_search.core.logging import configure_logging
from doc_search.core.metrics import REQUEST_COUNT

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Warm up core singletons on startup and flush snapshots on shutdown."""
    get_app_settings()
    get_document_store()
    get_vector_index()
    get_search_service()
    yield
    shutdown()


app = FastAPI(
    title="Documentation Search",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chapters_router, prefix="/api", tags=["chapters"])
app.include_router(query_router, prefix="/api", tags=["search"])
app.include_router(ingest_router, prefix="/api", tags=["ingest"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.middleware("http")
async def count_requests(request: Request, call_next):
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(endpoint=endpoint, method=request.method, status=str(response.status_code)).inc()
    return response


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
