"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class ImportStats:
    """Aggregated import statistics."""

    imported: int = 0
    skipped: int = 0
    failed: int = 0

    def merge(self, other: "ImportStats") -> None:
        self.imported += other.imported
        self.skipped += other.skipped
        self.failed += other.failed

    def to_dict(self) -> dict[str, int]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass(slots=True)
class ImportResult:
    """Outcome for a single structure file."""

    path: Path
    kind: str
    status: str
    stats: ImportStats = field(default_factory=ImportStats)
    detail: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "kind": self.kind,
            "status": self.status,
            "stats": self.stats.to_dict(),
            "detail": self.detail,
        }


__all__ = ["ImportStats", "ImportResult"]
