"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "docs_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

SEARCH_LATENCY = Histogram(
    "docs_search_latency_seconds",
    "Latency of search calls",
    labelnames=("search_type",),
    registry=REGISTRY,
)

CHAPTER_COUNT = Gauge(
    "docs_chapters",
    "Number of chapters held by the document store",
    registry=REGISTRY,
)

EMBEDDING_COUNT = Gauge(
    "docs_embeddings",
    "Number of chapter embeddings held by the vector index",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "SEARCH_LATENCY",
    "CHAPTER_COUNT",
    "EMBEDDING_COUNT",
    "metrics_response",
]
