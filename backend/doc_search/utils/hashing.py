"""Hashing utilities."""

from __future__ import annotations

import hashlib


def md5_hex(text: str) -> str:
    """Return the hex MD5 digest of a UTF-8 string."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()
