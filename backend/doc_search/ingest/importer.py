"""Import documentation structure files into the document store."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Sequence

import orjson

from doc_search.core.logging import get_logger
from doc_search.db.document_store import DocumentStore
from doc_search.ingest.types import ImportResult, ImportStats

logger = get_logger(__name__)

STRUCTURE_ANALYSIS_FILE = "structure_analysis.json"
RAG_STRUCTURE_FILE = "rag_structure.json"
FULL_TEXT_STRUCTURE_FILE = "full_text_structure.json"

PAGE_CHAPTER_OFFSET = 10000
DEFAULT_DOCUMENT_TITLE = "Documentation"


class ChapterImporter:
    """Populate a :class:`DocumentStore` from exported structure JSON files."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def import_directory(self, directory: Path) -> list[ImportResult]:
        """Import the three known structure files of ``directory`` in order."""
        directory = directory.expanduser()
        steps: Sequence[tuple[str, Callable[[Path], ImportResult]]] = (
            (STRUCTURE_ANALYSIS_FILE, self.import_structure_analysis),
            (RAG_STRUCTURE_FILE, self.import_rag_structure),
            (FULL_TEXT_STRUCTURE_FILE, self.import_full_text_structure),
        )
        results: list[ImportResult] = []
        for filename, step in steps:
            path = directory / filename
            if not path.is_file():
                logger.info("Structure file %s not found; skipping", path)
                results.append(ImportResult(path=path, kind=filename.removesuffix(".json"), status="missing"))
                continue
            results.append(step(path))
        return results

    def import_paths(self, paths: Iterable[Path]) -> list[ImportResult]:
        """Import explicit files (format detected from their keys) or directories."""
        results: list[ImportResult] = []
        for path in paths:
            path = path.expanduser()
            if path.is_dir():
                results.extend(self.import_directory(path))
                continue
            data = _read_json(path)
            if data is None:
                results.append(_failed(path, "unknown", "unreadable JSON"))
                continue
            if "structure_analysis" in data or "document_info" in data:
                results.append(self._structure_analysis(path, data))
            elif "chapters" in data:
                results.append(self._rag_structure(path, data))
            elif "pages" in data:
                results.append(self._full_text_structure(path, data))
            else:
                results.append(_failed(path, "unknown", "unrecognised structure file"))
        return results

    def import_structure_analysis(self, path: Path) -> ImportResult:
        data = _read_json(path)
        if data is None:
            return _failed(path, "structure_analysis", "unreadable JSON")
        return self._structure_analysis(path, data)

    def import_rag_structure(self, path: Path) -> ImportResult:
        data = _read_json(path)
        if data is None:
            return _failed(path, "rag_structure", "unreadable JSON")
        return self._rag_structure(path, data)

    def import_full_text_structure(self, path: Path) -> ImportResult:
        data = _read_json(path)
        if data is None:
            return _failed(path, "full_text_structure", "unreadable JSON")
        return self._full_text_structure(path, data)

    # Internal helpers -------------------------------------------------

    def _structure_analysis(self, path: Path, data: Mapping[str, Any]) -> ImportResult:
        logger.info("Importing documentation structure from %s", path)
        info = data.get("document_info")
        if isinstance(info, Mapping):
            self._store_document_metadata(info)
        analysis = data.get("structure_analysis")
        stats = ImportStats()
        if isinstance(analysis, Mapping):
            for key in ("total_chapters", "chapters_with_content", "chapters_with_tables"):
                self.store.set_metadata(key, _as_text(analysis.get(key)))
            for chapter in analysis.get("chapter_details") or []:
                if not isinstance(chapter, Mapping):
                    stats.skipped += 1
                    continue
                self._add(
                    stats,
                    {
                        "chapter_id": chapter.get("id"),
                        "title": chapter.get("title"),
                        "content": "",
                        "page_start": chapter.get("page_start") or 0,
                        "content_lines": chapter.get("content_lines") or 0,
                        "images_count": chapter.get("images_count") or 0,
                        "tables_count": chapter.get("tables_count") or 0,
                    },
                )
        logger.info("Structure import finished: %s imported, %s skipped", stats.imported, stats.skipped)
        return ImportResult(path=path, kind="structure_analysis", status="ok", stats=stats)

    def _rag_structure(self, path: Path, data: Mapping[str, Any]) -> ImportResult:
        logger.info("Importing RAG structure from %s", path)
        metadata = data.get("metadata")
        if isinstance(metadata, Mapping):
            self._store_document_metadata(metadata)
        chapters = data.get("chapters")
        stats = ImportStats()
        if isinstance(chapters, list):
            logger.info("Found %s chapters to import", len(chapters))
            for chapter in chapters:
                if not isinstance(chapter, Mapping):
                    stats.skipped += 1
                    continue
                self._add(
                    stats,
                    {
                        "chapter_id": chapter.get("id"),
                        "title": chapter.get("title"),
                        "content": chapter.get("content") or "",
                        "page_start": chapter.get("page_start") or 0,
                        "images_count": _count(chapter.get("images")),
                        "tables_count": _count(chapter.get("tables")),
                    },
                )
                if stats.imported and stats.imported % 100 == 0:
                    logger.info("Imported %s chapters", stats.imported)
        logger.info("RAG import finished: %s imported, %s skipped", stats.imported, stats.skipped)
        return ImportResult(path=path, kind="rag_structure", status="ok", stats=stats)

    def _full_text_structure(self, path: Path, data: Mapping[str, Any]) -> ImportResult:
        logger.info("Importing full text structure from %s", path)
        metadata = data.get("metadata")
        if isinstance(metadata, Mapping):
            self._store_document_metadata(metadata)
        pages = data.get("pages")
        stats = ImportStats()
        if isinstance(pages, list):
            for page in pages:
                if not isinstance(page, Mapping):
                    stats.skipped += 1
                    continue
                content = page.get("content")
                number = page.get("page_number")
                if not isinstance(content, str) or not content.strip() or not isinstance(number, int):
                    stats.skipped += 1
                    continue
                self._add(
                    stats,
                    {
                        "chapter_id": PAGE_CHAPTER_OFFSET + number,
                        "title": f"Page {number}",
                        "content": content,
                        "page_start": number,
                    },
                )
        logger.info("Page import finished: %s imported, %s skipped", stats.imported, stats.skipped)
        return ImportResult(path=path, kind="full_text_structure", status="ok", stats=stats)

    def _add(self, stats: ImportStats, chapter: dict[str, Any]) -> None:
        title = chapter.get("title")
        if not isinstance(title, str) or not title.strip():
            stats.skipped += 1
            return
        if self.store.upsert_chapter(chapter):
            stats.imported += 1
        else:
            stats.failed += 1

    def _store_document_metadata(self, info: Mapping[str, Any]) -> None:
        self.store.set_metadata("document_title", info.get("title") or DEFAULT_DOCUMENT_TITLE)
        self.store.set_metadata("page_count", _as_text(info.get("page_count")))
        self.store.set_metadata("file_size", _as_text(info.get("file_size")))


def _read_json(path: Path) -> dict[str, Any] | None:
    try:
        data = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        logger.exception("Failed to read %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Structure file %s does not hold a JSON object", path)
        return None
    return data


def _failed(path: Path, kind: str, detail: str) -> ImportResult:
    return ImportResult(path=path, kind=kind, status="error", stats=ImportStats(failed=1), detail=detail)


def _as_text(value: Any) -> str:
    return "0" if value is None else str(value)


def _count(value: Any) -> int:
    return len(value) if isinstance(value, (list, tuple)) else 0


__all__ = ["ChapterImporter", "PAGE_CHAPTER_OFFSET"]
