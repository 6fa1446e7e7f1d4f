"""Tests for structure file import."""

from __future__ import annotations

from pathlib import Path

import orjson

from doc_search.db.document_store import DocumentStore
from doc_search.ingest.importer import PAGE_CHAPTER_OFFSET, ChapterImporter


def _write(path: Path, payload: object) -> Path:
    path.write_bytes(orjson.dumps(payload))
    return path


def _export_dir(tmp_path: Path) -> Path:
    export = tmp_path / "export"
    export.mkdir()
    _write(
        export / "structure_analysis.json",
        {
            "document_info": {"title": "Mobile SMARTS manual", "page_count": 120, "file_size": 2048},
            "structure_analysis": {
                "total_chapters": 2,
                "chapters_with_content": 1,
                "chapters_with_tables": 1,
                "chapter_details": [
                    {"id": 1, "title": "Receiving goods", "page_start": 3, "content_lines": 12, "tables_count": 1},
                    {"id": 2, "title": "Printing labels", "page_start": 9},
                    "not a chapter",
                ],
            },
        },
    )
    _write(
        export / "rag_structure.json",
        {
            "metadata": {"title": "Mobile SMARTS manual", "page_count": 120, "file_size": 2048},
            "chapters": [
                {
                    "id": 1,
                    "title": "Receiving goods",
                    "content": ["Scan the barcode", {"text": "Confirm the document"}],
                    "page_start": 3,
                    "images": [{"src": "a.png"}],
                    "tables": [],
                },
                {"id": 3, "title": "", "content": "untitled"},
            ],
        },
    )
    _write(
        export / "full_text_structure.json",
        {
            "pages": [
                {"page_number": 1, "content": "Cover page text"},
                {"page_number": 2, "content": "   "},
                {"content": "no number"},
            ],
        },
    )
    return export


def test_import_directory(tmp_path: Path, store: DocumentStore) -> None:
    results = ChapterImporter(store).import_directory(_export_dir(tmp_path))

    assert [result.kind for result in results] == ["structure_analysis", "rag_structure", "full_text_structure"]
    assert all(result.status == "ok" for result in results)
    assert results[0].stats.to_dict() == {"imported": 2, "skipped": 1, "failed": 0}
    assert results[1].stats.to_dict() == {"imported": 1, "skipped": 1, "failed": 0}
    assert results[2].stats.to_dict() == {"imported": 1, "skipped": 2, "failed": 0}

    chapter = store.get_chapter(1)
    assert chapter.text == "Scan the barcode Confirm the document"
    assert chapter.content_lines == 2
    assert chapter.images_count == 1
    assert chapter.tables_count == 0

    outline_only = store.get_chapter(2)
    assert outline_only.page_start == 9
    assert outline_only.text == ""

    page = store.get_chapter(PAGE_CHAPTER_OFFSET + 1)
    assert page.title == "Page 1"
    assert page.page_start == 1

    assert store.get_metadata("total_chapters") == "2"
    info = store.document_info()
    assert info["title"] == "Mobile SMARTS manual"
    assert info["page_count"] == 120


def test_missing_files_are_reported(tmp_path: Path, store: DocumentStore) -> None:
    results = ChapterImporter(store).import_directory(tmp_path)
    assert [result.status for result in results] == ["missing", "missing", "missing"]
    assert len(store) == 0


def test_import_paths_detects_format(tmp_path: Path, store: DocumentStore) -> None:
    rag = _write(tmp_path / "chapters.json", {"chapters": [{"id": 4, "title": "Scanner", "content": "usb"}]})
    pages = _write(tmp_path / "pages.json", {"pages": [{"page_number": 7, "content": "Text"}]})
    unknown = _write(tmp_path / "other.json", {"something": []})
    broken = tmp_path / "broken.json"
    broken.write_text("{oops", encoding="utf-8")

    results = ChapterImporter(store).import_paths([rag, pages, unknown, broken])

    assert [result.kind for result in results] == ["rag_structure", "full_text_structure", "unknown", "unknown"]
    assert [result.status for result in results] == ["ok", "ok", "error", "error"]
    assert store.get_chapter(4).title == "Scanner"
    assert store.get_chapter(PAGE_CHAPTER_OFFSET + 7) is not None
    assert results[3].to_dict()["stats"]["failed"] == 1
