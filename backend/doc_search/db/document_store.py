"""Chapter and metadata repository backed by JSON snapshots."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping

import orjson

from doc_search.core.logging import get_logger
from doc_search.core.metrics import CHAPTER_COUNT
from doc_search.db.snapshots import JsonSnapshot
from doc_search.models.entities import (
    Chapter,
    MetadataEntry,
    SearchRecord,
    count_content_lines,
    parse_content,
)
from doc_search.utils.text import strip_punctuation
from doc_search.utils.time import utc_now_iso

logger = get_logger(__name__)

CHAPTERS_FILE = "chapters.json"
METADATA_FILE = "metadata.json"
SEARCH_INDEX_FILE = "search_index.json"

MAX_KEYWORDS = 10
TITLE_MATCH_SCORE = 10
CONTENT_MATCH_SCORE = 1

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ChapterValidationError(ValueError):
    """Raised internally when chapter input cannot be stored."""


@dataclass(slots=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    def to_dict(self) -> dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages}


@dataclass(slots=True)
class ChapterPage:
    chapters: list[Chapter] = field(default_factory=list)
    pagination: Pagination = field(default_factory=lambda: Pagination(page=1, limit=0, total=0, pages=0))


@dataclass(slots=True)
class KeywordHit:
    chapter: Chapter
    search_text: str
    relevance_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.chapter.to_dict(),
            "search_text": self.search_text,
            "relevance_score": self.relevance_score,
        }


class DocumentStore:
    """In-memory chapter store that persists every mutation as full snapshots."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir.expanduser()
        self._chapters_snapshot = JsonSnapshot(self.data_dir / CHAPTERS_FILE)
        self._metadata_snapshot = JsonSnapshot(self.data_dir / METADATA_FILE)
        self._search_snapshot = JsonSnapshot(self.data_dir / SEARCH_INDEX_FILE)
        self._chapters: dict[int, Chapter] = {}
        self._metadata: dict[str, MetadataEntry] = {}
        self._search_index: dict[int, SearchRecord] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._chapters)

    def open(self) -> "DocumentStore":
        """Load snapshots from disk; missing or unreadable files yield empty tables."""
        with self._lock:
            self._chapters = _load_table(self._chapters_snapshot, Chapter.from_dict, key=int)
            self._metadata = _load_table(self._metadata_snapshot, MetadataEntry.from_dict, key=str)
            self._search_index = _load_table(self._search_snapshot, SearchRecord.from_dict, key=int)
            self._next_id = max((chapter.id for chapter in self._chapters.values()), default=0) + 1
            CHAPTER_COUNT.set(len(self._chapters))
        logger.info("Document store opened at %s with %s chapters", self.data_dir, len(self._chapters))
        return self

    def close(self) -> None:
        self.save()

    def save(self) -> bool:
        with self._lock:
            chapters_ok = self._chapters_snapshot.save(
                {str(chapter_id): chapter.to_dict() for chapter_id, chapter in self._chapters.items()}
            )
            metadata_ok = self._metadata_snapshot.save({key: entry.to_dict() for key, entry in self._metadata.items()})
            search_ok = self._search_snapshot.save(
                {str(chapter_id): record.to_dict() for chapter_id, record in self._search_index.items()}
            )
        return chapters_ok and metadata_ok and search_ok

    # Chapters ---------------------------------------------------------

    def upsert_chapter(self, data: Mapping[str, Any]) -> bool:
        """Create or overwrite a chapter keyed by ``chapter_id``.

        Returns ``False`` when the input is invalid or the snapshot could not
        be written; invalid input leaves the store untouched.
        """
        try:
            fields = _validate_chapter(data)
        except ChapterValidationError as exc:
            logger.warning("Rejected chapter %r: %s", data.get("chapter_id"), exc)
            return False

        with self._lock:
            now = utc_now_iso()
            existing = self._chapters.get(fields["chapter_id"])
            if existing is not None:
                internal_id, created_at = existing.id, existing.created_at
            else:
                internal_id, created_at = self._next_id, now
                self._next_id += 1
            chapter = Chapter(id=internal_id, created_at=created_at, updated_at=now, **fields)
            self._chapters[chapter.chapter_id] = chapter
            search_text = f"{chapter.title} {chapter.text}".lower()
            self._search_index[chapter.chapter_id] = SearchRecord(
                chapter_id=chapter.chapter_id,
                search_text=search_text,
                keywords=extract_keywords(search_text),
                created_at=now,
            )
            CHAPTER_COUNT.set(len(self._chapters))
            return self.save()

    def get_chapter(self, chapter_id: int) -> Chapter | None:
        return self._chapters.get(int(chapter_id))

    def delete_chapter(self, chapter_id: int) -> bool:
        """Remove a chapter together with its search record and persist before returning."""
        key = int(chapter_id)
        with self._lock:
            removed = self._chapters.pop(key, None)
            self._search_index.pop(key, None)
            if removed is None:
                return False
            CHAPTER_COUNT.set(len(self._chapters))
            self.save()
        return True

    def iter_chapters(self) -> Iterator[Chapter]:
        return iter(list(self._chapters.values()))

    def list_chapters(self, page: int = 1, limit: int = 20, search: str | None = None) -> ChapterPage:
        if page < 1 or limit < 1:
            logger.warning("Invalid pagination page=%s limit=%s", page, limit)
            return ChapterPage(chapters=[], pagination=Pagination(page=page, limit=limit, total=0, pages=0))

        chapters = list(self._chapters.values())
        if search:
            needle = search.lower()
            chapters = [
                chapter
                for chapter in chapters
                if needle in chapter.title.lower() or needle in chapter.text.lower()
            ]
        chapters.sort(key=lambda chapter: chapter.chapter_id)

        total = len(chapters)
        offset = (page - 1) * limit
        return ChapterPage(
            chapters=chapters[offset : offset + limit],
            pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        )

    def search_chapters(self, query: str, limit: int = 10) -> list[KeywordHit]:
        """Substring search over search records ranked by :func:`relevance_score`."""
        needle = query.lower()
        if not needle.strip() or limit < 1:
            return []
        hits: list[KeywordHit] = []
        for chapter_id, record in list(self._search_index.items()):
            if needle not in record.search_text:
                continue
            chapter = self._chapters.get(chapter_id)
            if chapter is None:
                continue
            hits.append(
                KeywordHit(
                    chapter=chapter,
                    search_text=record.search_text,
                    relevance_score=relevance_score(chapter, needle),
                )
            )
        hits.sort(key=lambda hit: (-hit.relevance_score, hit.chapter.chapter_id))
        return hits[:limit]

    def get_statistics(self) -> dict[str, int]:
        stats = {
            "total_chapters": len(self._chapters),
            "chapters_with_content": 0,
            "chapters_with_tables": 0,
            "chapters_with_images": 0,
            "total_content_lines": 0,
            "total_tables": 0,
            "total_images": 0,
        }
        for chapter in list(self._chapters.values()):
            if chapter.text.strip():
                stats["chapters_with_content"] += 1
            if chapter.tables_count > 0:
                stats["chapters_with_tables"] += 1
            if chapter.images_count > 0:
                stats["chapters_with_images"] += 1
            stats["total_content_lines"] += chapter.content_lines
            stats["total_tables"] += chapter.tables_count
            stats["total_images"] += chapter.images_count
        return stats

    # Metadata ---------------------------------------------------------

    def set_metadata(self, key: str, value: Any) -> bool:
        with self._lock:
            now = utc_now_iso()
            existing = self._metadata.get(key)
            self._metadata[key] = MetadataEntry(
                value=str(value),
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            return self.save()

    def get_metadata(self, key: str) -> str | None:
        entry = self._metadata.get(key)
        return entry.value if entry else None

    def document_info(self) -> dict[str, Any]:
        return {
            "title": self.get_metadata("document_title") or "Documentation",
            "page_count": _parse_int(self.get_metadata("page_count")),
            "file_size": _parse_int(self.get_metadata("file_size")),
            "total_chapters": _parse_int(self.get_metadata("total_chapters")),
            "chapters_with_content": _parse_int(self.get_metadata("chapters_with_content")),
        }


def relevance_score(chapter: Chapter, query: str) -> int:
    """+10 per query word found in the title, +1 per word found in the body."""
    title = chapter.title.lower()
    content = chapter.text.lower()
    score = 0
    for word in query.lower().split():
        if word in title:
            score += TITLE_MATCH_SCORE
        if word in content:
            score += CONTENT_MATCH_SCORE
    return score


def extract_keywords(text: str) -> list[str]:
    words = strip_punctuation(text.lower()).split()
    return [word for word in words if len(word) > 3][:MAX_KEYWORDS]


def _validate_chapter(data: Mapping[str, Any]) -> dict[str, Any]:
    if data.get("chapter_id") is None:
        raise ChapterValidationError("chapter_id is required")
    chapter_id = _coerce_int(data["chapter_id"], "chapter_id")
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ChapterValidationError("title is required")

    raw_content = _check_content(data.get("content"))
    content_lines = data.get("content_lines")
    if content_lines is None:
        content_lines = count_content_lines(raw_content)
    return {
        "chapter_id": chapter_id,
        "title": title,
        "content": parse_content(raw_content),
        "page_start": _coerce_count(data.get("page_start"), "page_start"),
        "content_lines": _coerce_count(content_lines, "content_lines"),
        "images_count": _coerce_count(data.get("images_count"), "images_count"),
        "tables_count": _coerce_count(data.get("tables_count"), "tables_count"),
    }


def _check_content(raw: Any) -> Any:
    """Accept a string, a list of blocks or nothing; blocks must encode as JSON."""
    if raw is None or isinstance(raw, str):
        return raw
    if not isinstance(raw, (list, tuple)):
        raise ChapterValidationError("content must be a string or a list of blocks")
    try:
        orjson.dumps(raw)
    except orjson.JSONEncodeError as exc:
        raise ChapterValidationError(f"content is not serialisable: {exc}") from exc
    return raw


def _coerce_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ChapterValidationError(f"{name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ChapterValidationError(f"{name} must be an integer") from exc
    if not INT64_MIN <= number <= INT64_MAX:
        raise ChapterValidationError(f"{name} is out of range")
    return number


def _coerce_count(value: Any, name: str) -> int:
    if value is None:
        return 0
    number = _coerce_int(value, name)
    if number < 0:
        raise ChapterValidationError(f"{name} must not be negative")
    return number


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _load_table(snapshot: JsonSnapshot, factory, key) -> dict:
    raw = snapshot.load()
    if not isinstance(raw, dict):
        return {}
    table = {}
    for raw_key, value in raw.items():
        try:
            table[key(raw_key)] = factory(value)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed entry %r in %s: %s", raw_key, snapshot.path, exc)
    return table


__all__ = [
    "DocumentStore",
    "ChapterPage",
    "Pagination",
    "KeywordHit",
    "relevance_score",
    "extract_keywords",
]
