"""Embedding utilities."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Protocol, Sequence

from doc_search.core.logging import get_logger
from doc_search.models.entities import Chapter, parse_content
from doc_search.utils.hashing import md5_hex
from doc_search.utils.text import normalize

if TYPE_CHECKING:  # pragma: no cover
    from doc_search.core.config import Settings

logger = get_logger(__name__)

EMBEDDING_DIMENSION = 128
HASHED_MODEL_NAME = "Simple-Hash-Based-Embeddings"

_STRIP_RE = re.compile(r"[^\w\sа-яё]", re.IGNORECASE)

DEFAULT_VOCABULARY: tuple[str, ...] = (
    "поступление", "товар", "склад", "настройка", "mobile", "smarts",
    "панель", "управление", "этикетка", "штрихкод", "принтер", "сканер",
    "документ", "система", "функция", "параметр", "конфигурация",
    "пользователь", "интерфейс", "данные", "база", "поиск", "фильтр",
    "отчет", "статистика", "анализ", "экспорт", "импорт", "синхронизация",
    "receiving", "goods", "warehouse", "settings", "panel", "control",
    "label", "barcode", "printer", "scanner", "document", "system",
    "function", "parameter", "configuration", "user", "interface", "data",
    "database", "search", "filter", "report", "statistics", "analysis",
    "export", "import", "synchronization",
)


class DimensionMismatchError(ValueError):
    """Vectors from different embedding backends were compared."""


@dataclass(slots=True)
class EmbeddingBatch:
    vectors: list[list[float]]
    model: str
    dim: int
    backend: str


class Embedder(Protocol):
    """Text in, fixed-length vector out."""

    @property
    def dim(self) -> int: ...

    def embed(self, text: str) -> list[float]: ...

    def embed_chapter(self, chapter: Chapter | Mapping[str, Any]) -> list[float]: ...

    def model_info(self) -> dict[str, Any]: ...


class _BaseEmbedder:
    model_name: str
    _backend: str

    @property
    def backend(self) -> str:
        return self._backend

    def embed(self, text: str) -> list[float]:  # pragma: no cover - interface
        raise NotImplementedError

    def embed_chapter(self, chapter: Chapter | Mapping[str, Any]) -> list[float]:
        return self.embed(chapter_text(chapter))

    def encode(self, texts: Iterable[str]) -> EmbeddingBatch:
        vectors = [self.embed(text) for text in texts]
        return EmbeddingBatch(vectors=vectors, model=self.model_name, dim=self.dim, backend=self._backend)

    @property
    def dim(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError


class HashEmbedder(_BaseEmbedder):
    """Deterministic bag-of-known-words embedding.

    Every vocabulary term owns a vector derived from the MD5 digest of the
    term: hex digit ``d`` becomes ``(d - 8) / 8`` and the 32 digits are cycled
    to fill the dimension. A text embeds to the mean of the vectors of the
    known terms it contains; unknown words contribute nothing and a text with
    no known word embeds to the zero vector.
    """

    def __init__(self, dim: int = EMBEDDING_DIMENSION, vocabulary: Iterable[str] | None = None) -> None:
        self.model_name = HASHED_MODEL_NAME
        self._dim = dim
        self._backend = "hashed"
        self._word_vectors: dict[str, list[float]] = {}
        words = DEFAULT_VOCABULARY if vocabulary is None else vocabulary
        self._add_words(words)

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def vocabulary(self) -> frozenset[str]:
        return frozenset(self._word_vectors)

    def embed(self, text: str) -> list[float]:
        embedding = [0.0] * self._dim
        matches = 0
        for word in normalize_text(text).split(" "):
            vector = self._word_vectors.get(word)
            if vector is None:
                continue
            for idx, value in enumerate(vector):
                embedding[idx] += value
            matches += 1
        if matches:
            embedding = [value / matches for value in embedding]
        return embedding

    def expand_vocabulary(self, words: Iterable[str]) -> int:
        added = self._add_words(words)
        logger.info("Added %s new words to the embedding vocabulary", added)
        return added

    def model_info(self) -> dict[str, Any]:
        return {
            "name": self.model_name,
            "dimension": self._dim,
            "isLoaded": bool(self._word_vectors),
            "vocabularySize": len(self._word_vectors),
        }

    def _add_words(self, words: Iterable[str]) -> int:
        added = 0
        for word in words:
            term = word.strip().lower()
            if not term or term in self._word_vectors:
                continue
            self._word_vectors[term] = term_vector(term, self._dim)
            added += 1
        return added


class SentenceTransformerEmbedder(_BaseEmbedder):
    """Model-backed embedder with the same contract as :class:`HashEmbedder`."""

    def __init__(self, model_name: str, device: str | None = None, max_chars: int = 512) -> None:
        self.model_name = model_name
        self.device = device
        self.max_chars = max_chars
        self._backend = "sentence-transformers"
        self._model = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model '%s'", self.model_name)
            self._model = SentenceTransformer(self.model_name, device=self.device)
        return self._model

    @property
    def dim(self) -> int:
        return int(self.model.get_sentence_embedding_dimension())

    def embed(self, text: str) -> list[float]:
        prepared = truncate_words(normalize_text(text), self.max_chars)
        vector = self.model.encode(prepared, normalize_embeddings=True, convert_to_numpy=True)
        return [float(value) for value in vector]

    def model_info(self) -> dict[str, Any]:
        loaded = self._model is not None
        return {
            "name": self.model_name,
            "dimension": self.dim if loaded else None,
            "isLoaded": loaded,
        }


def term_vector(term: str, dim: int = EMBEDDING_DIMENSION) -> list[float]:
    digest = md5_hex(term.lower())
    return [(int(digest[idx % len(digest)], 16) - 8) / 8 for idx in range(dim)]


def normalize_text(text: str) -> str:
    return normalize(_STRIP_RE.sub(" ", text.lower()))


def truncate_words(text: str, max_chars: int) -> str:
    """Cut ``text`` at a word boundary so it fits in ``max_chars``."""
    if len(text) <= max_chars:
        return text
    kept: list[str] = []
    size = 0
    for word in text.split(" "):
        extra = len(word) + (1 if kept else 0)
        if size + extra > max_chars:
            break
        kept.append(word)
        size += extra
    return " ".join(kept)


def chapter_text(chapter: Chapter | Mapping[str, Any]) -> str:
    if isinstance(chapter, Chapter):
        title, body = chapter.title, chapter.text
    else:
        title = chapter.get("title") or ""
        body = parse_content(chapter.get("content")).flatten()
    return f"{title}\n\n{body}"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vector dimension mismatch: {len(a)} != {len(b)}")
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def build_embedder(settings: "Settings") -> _BaseEmbedder:
    if settings.embedding_backend == "hashed":
        embedder = HashEmbedder(dim=settings.embedding_dimension)
        if settings.extra_vocabulary:
            embedder.expand_vocabulary(settings.extra_vocabulary)
        return embedder
    if settings.embedding_backend == "sentence-transformers":
        return SentenceTransformerEmbedder(settings.embedding_model)
    raise ValueError(f"Unknown embedding backend: {settings.embedding_backend}")


__all__ = [
    "EMBEDDING_DIMENSION",
    "DEFAULT_VOCABULARY",
    "DimensionMismatchError",
    "Embedder",
    "EmbeddingBatch",
    "HashEmbedder",
    "SentenceTransformerEmbedder",
    "build_embedder",
    "chapter_text",
    "cosine_similarity",
    "normalize_text",
    "term_vector",
]
