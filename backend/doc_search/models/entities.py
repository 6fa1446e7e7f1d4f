"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union


@dataclass(slots=True, frozen=True)
class TextContent:
    """Chapter body stored as a single string."""

    text: str = ""

    def flatten(self) -> str:
        return self.text

    def to_raw(self) -> str:
        return self.text


@dataclass(slots=True, frozen=True)
class BlockContent:
    """Chapter body stored as an ordered sequence of content blocks.

    A block is either a bare string or a mapping that may carry a ``text``
    field. Blocks without text (images, tables) flatten to an empty string.
    """

    blocks: tuple[Any, ...] = ()

    def flatten(self) -> str:
        return " ".join(_block_text(block) for block in self.blocks)

    def to_raw(self) -> list[Any]:
        return list(self.blocks)


Content = Union[TextContent, BlockContent]


def _block_text(block: Any) -> str:
    if isinstance(block, str):
        return block
    if isinstance(block, Mapping):
        text = block.get("text")
        if isinstance(text, str) and text:
            return text
    return ""


def parse_content(raw: Any) -> Content:
    """Convert a raw snapshot/API value into a content variant."""
    if isinstance(raw, (TextContent, BlockContent)):
        return raw
    if isinstance(raw, str):
        return TextContent(raw)
    if isinstance(raw, (list, tuple)):
        return BlockContent(tuple(raw))
    return TextContent("")


def count_content_lines(raw: Any) -> int:
    """Line count for string content, block count for block content, else 0."""
    if isinstance(raw, TextContent):
        raw = raw.text
    elif isinstance(raw, BlockContent):
        raw = raw.blocks
    if isinstance(raw, str):
        return raw.count("\n") + 1
    if isinstance(raw, (list, tuple)):
        return len(raw)
    return 0


@dataclass(slots=True)
class Chapter:
    id: int
    chapter_id: int
    title: str
    content: Content
    page_start: int
    content_lines: int
    images_count: int
    tables_count: int
    created_at: str
    updated_at: str

    @property
    def text(self) -> str:
        """Flattened chapter body."""
        return self.content.flatten()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chapter_id": self.chapter_id,
            "title": self.title,
            "content": self.content.to_raw(),
            "page_start": self.page_start,
            "content_lines": self.content_lines,
            "images_count": self.images_count,
            "tables_count": self.tables_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Chapter":
        return cls(
            id=int(data.get("id") or 0),
            chapter_id=int(data["chapter_id"]),
            title=str(data["title"]),
            content=parse_content(data.get("content")),
            page_start=int(data.get("page_start") or 0),
            content_lines=int(data.get("content_lines") or 0),
            images_count=int(data.get("images_count") or 0),
            tables_count=int(data.get("tables_count") or 0),
            created_at=str(data.get("created_at") or ""),
            updated_at=str(data.get("updated_at") or ""),
        )


@dataclass(slots=True)
class MetadataEntry:
    value: str
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "created_at": self.created_at, "updated_at": self.updated_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetadataEntry":
        return cls(
            value=str(data.get("value", "")),
            created_at=str(data.get("created_at") or ""),
            updated_at=str(data.get("updated_at") or ""),
        )


@dataclass(slots=True)
class SearchRecord:
    chapter_id: int
    search_text: str
    keywords: list[str] = field(default_factory=list)
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "chapter_id": self.chapter_id,
            "search_text": self.search_text,
            "keywords": list(self.keywords),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SearchRecord":
        keywords = data.get("keywords") or []
        if isinstance(keywords, str):
            keywords = keywords.split()
        return cls(
            chapter_id=int(data["chapter_id"]),
            search_text=str(data.get("search_text", "")),
            keywords=list(keywords),
            created_at=str(data.get("created_at") or ""),
        )


@dataclass(slots=True)
class EmbeddingRecord:
    embedding: list[float]
    title: str
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"embedding": list(self.embedding), "title": self.title, "generated_at": self.generated_at}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmbeddingRecord":
        return cls(
            embedding=[float(value) for value in data["embedding"]],
            title=str(data.get("title", "")),
            generated_at=str(data.get("generated_at") or ""),
        )


__all__ = [
    "TextContent",
    "BlockContent",
    "Content",
    "parse_content",
    "count_content_lines",
    "Chapter",
    "MetadataEntry",
    "SearchRecord",
    "EmbeddingRecord",
]
