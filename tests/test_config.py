"""Tests for settings validation and structured logging."""

from __future__ import annotations

import json
import logging

import pytest

from timeline_builder.config import Settings
from timeline_builder.logging_config import JSONFormatter


class TestSettings:
    def test_postgres_url_gets_async_driver(self) -> None:
        settings = Settings(database_url="postgresql://u:p@db/timelines", viewer_jwt_secret="s")
        assert settings.database_url == "postgresql+asyncpg://u:p@db/timelines"

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TLB_PERSISTENCE_BACKEND", "json")
        monkeypatch.setenv("TLB_JSON_STORAGE_DIR", "/tmp/timelines")
        settings = Settings(viewer_jwt_secret="s")
        assert settings.persistence_backend == "json"
        assert settings.json_storage_dir == "/tmp/timelines"

    def test_default_secret_refused_in_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TLB_ENV", "production")
        monkeypatch.delenv("TLB_VIEWER_JWT_SECRET", raising=False)
        with pytest.raises(ValueError):
            Settings()

    def test_custom_secret_allowed_in_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TLB_ENV", "production")
        assert Settings(viewer_jwt_secret="a-real-secret").viewer_jwt_secret == "a-real-secret"


class TestJSONFormatter:
    def test_extra_fields_included(self) -> None:
        record = logging.LogRecord("timeline_builder.core.store", logging.INFO, __file__, 1, "Sorted", None, None)
        record.timeline_id = "tl-1"
        record.collection = "data"
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "Sorted"
        assert data["level"] == "INFO"
        assert data["timeline_id"] == "tl-1"
        assert data["collection"] == "data"
        assert "entry_id" not in data
