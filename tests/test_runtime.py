"""Tests for settings loading and runtime wiring."""

from pathlib import Path
from typing import Any

import pytest

from oncall.catalog.store import InMemoryCatalogStore, SqliteCatalogStore
from oncall.config import Settings, get_settings
from oncall.runtime import build_runtime, build_store


def _settings(**overrides: Any) -> Settings:
    return Settings(**overrides)


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BACKEND_MODE", raising=False)
        monkeypatch.delenv("HANDLER_TIMEOUT_SECONDS", raising=False)
        settings = get_settings()
        assert settings.backend_mode == "mock"
        assert settings.handler_timeout_seconds == 5.0

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKEND_MODE", "sqlite")
        monkeypatch.setenv("CATALOG_DB_PATH", ":memory:")
        monkeypatch.setenv("HANDLER_TIMEOUT_SECONDS", "2.5")
        settings = get_settings()
        assert settings.backend_mode == "sqlite"
        assert settings.catalog_db_path == ":memory:"
        assert settings.handler_timeout_seconds == 2.5

    def test_invalid_backend_rejected(self) -> None:
        with pytest.raises(ValueError):
            _settings(backend_mode="postgres")


class TestBuildRuntime:
    def test_mock_backend(self) -> None:
        store = build_store(_settings(backend_mode="mock"))
        assert isinstance(store, InMemoryCatalogStore)
        assert len(store.list_services()) == 4

    def test_sqlite_backend(self, tmp_path: Path) -> None:
        store = build_store(_settings(backend_mode="sqlite", catalog_db_path=str(tmp_path / "c.db")))
        assert isinstance(store, SqliteCatalogStore)
        assert store.list_services() == []
        store.close()

    def test_sqlite_without_path_rejected(self) -> None:
        with pytest.raises(ValueError, match="CATALOG_DB_PATH"):
            build_store(_settings(backend_mode="sqlite", catalog_db_path=""))

    def test_seed_file_applied(self, tmp_path: Path) -> None:
        seed = tmp_path / "catalog.yaml"
        seed.write_text("services:\n  - name: billing-service\n    team: payments\n")

        runtime = build_runtime(_settings(catalog_seed_file=str(seed), handler_timeout_seconds=1.5))

        assert runtime.store.list_services()[-1].name == "billing-service"
        assert runtime.lookup.timeout == 1.5
        assert runtime.registry.resolver is runtime.resolver
