"""Tests for the JSON log formatter."""

from __future__ import annotations

import logging

import orjson

from doc_search.core.logging import JsonFormatter


def test_json_formatter_flattens_context_fields() -> None:
    record = logging.LogRecord("doc_search.test", logging.INFO, __file__, 1, "found %s", (3,), None)
    record.ctx_query = "warehouse"

    payload = orjson.loads(JsonFormatter().format(record))

    assert payload["message"] == "found 3"
    assert payload["level"] == "INFO"
    assert payload["query"] == "warehouse"
    assert payload["timestamp"].endswith("+00:00")
