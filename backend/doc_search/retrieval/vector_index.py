"""Vector index over chapter embeddings."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from doc_search.core.config import EMBEDDINGS_FILE
from doc_search.core.logging import get_logger
from doc_search.core.metrics import EMBEDDING_COUNT
from doc_search.db.snapshots import JsonSnapshot
from doc_search.ingest.embeddings import Embedder, cosine_similarity
from doc_search.models.entities import Chapter, EmbeddingRecord
from doc_search.utils.time import utc_now_iso

logger = get_logger(__name__)


class IndexNotReadyError(RuntimeError):
    """The index has been neither built nor loaded; callers may fall back to keyword search."""


@dataclass(slots=True)
class SearchResult:
    chapter_id: int
    title: str
    similarity: float
    metadata: dict[str, Any] = field(default_factory=dict)
    search_type: str = "semantic"
    final_score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chapter_id": self.chapter_id,
            "title": self.title,
            "similarity": self.similarity,
            "metadata": dict(self.metadata),
            "search_type": self.search_type,
        }
        if self.final_score is not None:
            payload["final_score"] = self.final_score
        return payload


@dataclass(slots=True)
class BuildReport:
    total: int = 0
    processed: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "processed": self.processed, "errors": self.errors}


class VectorIndex:
    """In-memory chapter embedding table ranked by cosine similarity."""

    def __init__(self, embedder: Embedder, snapshot_path: Path) -> None:
        self.embedder = embedder
        self._snapshot = JsonSnapshot(snapshot_path)
        self._entries: dict[int, EmbeddingRecord] = {}
        self._ready = False
        self._lock = threading.RLock()

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def is_ready(self) -> bool:
        return self._ready

    def build(self, chapters: Iterable[Chapter], embedder: Embedder | None = None) -> BuildReport:
        """Embed every chapter and overwrite its entry, then persist the table."""
        report = BuildReport()
        with self._lock:
            if embedder is not None:
                self.embedder = embedder
            for chapter in chapters:
                report.total += 1
                try:
                    vector = self.embedder.embed_chapter(chapter)
                except Exception as exc:  # noqa: BLE001
                    logger.exception("Failed to embed chapter %s: %s", chapter.chapter_id, exc)
                    report.errors += 1
                    continue
                self._entries[chapter.chapter_id] = EmbeddingRecord(
                    embedding=vector,
                    title=chapter.title,
                    generated_at=utc_now_iso(),
                )
                report.processed += 1
            self._ready = True
            EMBEDDING_COUNT.set(len(self._entries))
            self.persist()
        logger.info(
            "Vector index built: %s processed, %s errors out of %s chapters",
            report.processed,
            report.errors,
            report.total,
        )
        return report

    def semantic_search(self, query: str, limit: int = 10) -> list[SearchResult]:
        self._require_ready()
        query_vector = self.embedder.embed(query)
        results = [
            SearchResult(
                chapter_id=chapter_id,
                title=record.title,
                similarity=cosine_similarity(query_vector, record.embedding),
                metadata=_entry_metadata(chapter_id, record),
            )
            for chapter_id, record in list(self._entries.items())
        ]
        results.sort(key=lambda item: item.similarity, reverse=True)
        return results[: max(limit, 0)]

    def keyword_search(self, query: str, limit: int = 10) -> list[SearchResult]:
        """Score titles by the fraction of query words they contain."""
        self._require_ready()
        words = query.lower().split()
        if not words:
            return []
        results: list[SearchResult] = []
        for chapter_id, record in list(self._entries.items()):
            title = record.title.lower()
            matches = sum(1 for word in words if word in title)
            if matches:
                results.append(
                    SearchResult(
                        chapter_id=chapter_id,
                        title=record.title,
                        similarity=matches / len(words),
                        metadata=_entry_metadata(chapter_id, record),
                        search_type="keyword",
                    )
                )
        results.sort(key=lambda item: item.similarity, reverse=True)
        return results[: max(limit, 0)]

    def get_vector(self, chapter_id: int) -> EmbeddingRecord | None:
        self._require_ready()
        return self._entries.get(int(chapter_id))

    def add_or_update(self, chapter_id: int, title: str, content: Any) -> bool:
        """Re-embed one chapter and persist the whole table."""
        self._require_ready()
        with self._lock:
            vector = self.embedder.embed_chapter({"title": title, "content": content})
            self._entries[int(chapter_id)] = EmbeddingRecord(embedding=vector, title=title, generated_at=utc_now_iso())
            EMBEDDING_COUNT.set(len(self._entries))
            return self.persist()

    def remove(self, chapter_id: int) -> bool:
        with self._lock:
            removed = self._entries.pop(int(chapter_id), None)
            if removed is None:
                return False
            EMBEDDING_COUNT.set(len(self._entries))
            self.persist()
        return True

    def persist(self) -> bool:
        with self._lock:
            data = {
                "metadata": {
                    "model": self.embedder.model_info(),
                    "generated_at": utc_now_iso(),
                    "total_embeddings": len(self._entries),
                },
                "embeddings": {str(chapter_id): record.to_dict() for chapter_id, record in self._entries.items()},
            }
            saved = self._snapshot.save(data)
        if saved:
            logger.info("Embeddings saved: %s chapters", len(self._entries))
        return saved

    def load(self) -> bool:
        """Load the snapshot; a missing, corrupt or incompatible snapshot leaves the index not ready."""
        if not self._snapshot.exists:
            logger.info("No embeddings snapshot at %s", self._snapshot.path)
            return False
        raw = self._snapshot.load()
        if not isinstance(raw, dict) or not isinstance(raw.get("embeddings"), dict):
            logger.warning("Embeddings snapshot %s is malformed; index left unloaded", self._snapshot.path)
            return False
        entries: dict[int, EmbeddingRecord] = {}
        try:
            for raw_id, payload in raw["embeddings"].items():
                entries[int(raw_id)] = EmbeddingRecord.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Embeddings snapshot %s is malformed: %s", self._snapshot.path, exc)
            return False
        expected = self.embedder.dim
        mismatched = [chapter_id for chapter_id, record in entries.items() if len(record.embedding) != expected]
        if mismatched:
            logger.warning(
                "Embeddings snapshot holds %s vectors whose dimension differs from %s; rebuild required",
                len(mismatched),
                expected,
            )
            return False
        with self._lock:
            self._entries = entries
            self._ready = True
            EMBEDDING_COUNT.set(len(self._entries))
        logger.info("Loaded %s embeddings", len(entries))
        return True

    def statistics(self) -> dict[str, Any]:
        return {
            "total_embeddings": len(self._entries),
            "is_initialized": self._ready,
            "model_info": self.embedder.model_info(),
        }

    def _require_ready(self) -> None:
        if not self._ready:
            raise IndexNotReadyError("Vector index has not been built or loaded")


def _entry_metadata(chapter_id: int, record: EmbeddingRecord) -> dict[str, Any]:
    return {"chapter_id": chapter_id, "generated_at": record.generated_at}


__all__ = ["VectorIndex", "SearchResult", "BuildReport", "IndexNotReadyError", "EMBEDDINGS_FILE"]
