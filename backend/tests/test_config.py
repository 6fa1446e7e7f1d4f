"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from doc_search.core.config import Settings


def test_yaml_sections_map_to_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DOCS_DATA_DIR", raising=False)
    config = tmp_path / "config.yaml"
    config.write_text(
        "storage:\n"
        f"  data_dir: {tmp_path / 'data'}\n"
        "embeddings:\n"
        "  dimension: 64\n"
        "  extra_vocabulary: [zebra, pallet]\n"
        "search:\n"
        "  page_size: 50\n",
        encoding="utf-8",
    )

    settings = Settings.from_yaml(config)

    assert settings.data_dir == tmp_path / "data"
    assert settings.embedding_dimension == 64
    assert settings.extra_vocabulary == ["zebra", "pallet"]
    assert settings.page_size == 50
    assert settings.embedding_backend == "hashed"


def test_environment_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("search:\n  default_limit: 5\n", encoding="utf-8")
    monkeypatch.setenv("DOCS_DEFAULT_LIMIT", "7")
    monkeypatch.setenv("DOCS_EXTRA_VOCABULARY", "zebra, pallet ,")

    settings = Settings.from_yaml(config)

    assert settings.default_limit == 7
    assert settings.extra_vocabulary == ["zebra", "pallet"]
    assert settings.data_dir == tmp_path / "db"
    assert settings.embeddings_path == tmp_path / "db" / "embeddings.json"


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    settings = Settings.from_yaml(tmp_path / "absent.yaml")
    assert settings.default_limit == 10
    assert settings.import_dir is None
