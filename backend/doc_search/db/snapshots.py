"""JSON snapshot files rewritten wholesale on every save."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import orjson

from doc_search.core.logging import get_logger

logger = get_logger(__name__)


class JsonSnapshot:
    """Thin wrapper around a single JSON file holding one in-memory table."""

    def __init__(self, path: Path) -> None:
        self.path = path.expanduser()

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Any | None:
        """Return the decoded snapshot, or ``None`` when absent or unreadable."""
        if not self.exists:
            return None
        try:
            return orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.warning("Failed to read snapshot %s: %s", self.path, exc)
            return None

    def save(self, data: Any) -> bool:
        """Write ``data`` to a temp file in the same directory and rename it into place."""
        tmp_name: str | None = None
        try:
            payload = orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
            return True
        except orjson.JSONEncodeError as exc:
            logger.error("Failed to encode snapshot %s: %s", self.path, exc)
            return False
        except OSError as exc:
            logger.error("Failed to write snapshot %s: %s", self.path, exc)
            return False
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)


__all__ = ["JsonSnapshot"]
