"""Tests for the in-memory and SQLite catalog stores."""

import logging
import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest

from oncall.catalog.errors import CatalogUnavailableError
from oncall.catalog.fixtures import mock_service_records
from oncall.catalog.models import ServiceRecord
from oncall.catalog.store import InMemoryCatalogStore, SqliteCatalogStore, find_pattern_conflicts


def _record(name: str, team: str = "platform", patterns: tuple[str, ...] = ()) -> ServiceRecord:
    return ServiceRecord.model_validate(
        {
            "name": name,
            "team": team,
            "resources": [{"pattern": p, "type": "thing"} for p in patterns],
        }
    )


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Generator[SqliteCatalogStore]:
    store = SqliteCatalogStore(str(tmp_path / "catalog.db"))
    yield store
    store.close()


class TestInMemoryStore:
    def test_preserves_insertion_order(self, catalog_store: InMemoryCatalogStore) -> None:
        names = [s.name for s in catalog_store.list_services()]
        assert names == ["user-service", "auth-service", "order-service", "inventory-service"]

    def test_filter_by_team(self, catalog_store: InMemoryCatalogStore) -> None:
        names = [s.name for s in catalog_store.list_services(team="commerce")]
        assert names == ["order-service", "inventory-service"]

    def test_upsert_existing_keeps_position(self, catalog_store: InMemoryCatalogStore) -> None:
        updated = catalog_store.get_service("user-service").model_copy(update={"team": "identity"})
        catalog_store.upsert_service(updated)

        services = catalog_store.list_services()
        assert services[0].name == "user-service"
        assert services[0].team == "identity"

    def test_upsert_new_appends(self, catalog_store: InMemoryCatalogStore) -> None:
        catalog_store.upsert_service(_record("billing-service"))
        assert catalog_store.list_services()[-1].name == "billing-service"

    def test_delete(self, catalog_store: InMemoryCatalogStore) -> None:
        assert catalog_store.delete_service("auth-service") is True
        assert catalog_store.get_service("auth-service") is None
        assert catalog_store.delete_service("auth-service") is False

    def test_get_missing_returns_none(self, catalog_store: InMemoryCatalogStore) -> None:
        assert catalog_store.get_service("nope") is None

    def test_always_healthy(self, catalog_store: InMemoryCatalogStore) -> None:
        assert catalog_store.check_health() is True


class TestPatternConflicts:
    def test_duplicate_pattern_reported(self) -> None:
        records = [_record("a", patterns=("x-*",)), _record("b", patterns=("x-*", "y-*"))]
        assert find_pattern_conflicts(records) == [("x-*", "a", "b")]

    def test_same_service_repeating_pattern_is_not_a_conflict(self) -> None:
        assert find_pattern_conflicts([_record("a", patterns=("x-*", "x-*"))]) == []

    def test_conflict_logged_on_construction(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="oncall.catalog.store"):
            InMemoryCatalogStore([_record("a", patterns=("x-*",)), _record("b", patterns=("x-*",))])
        assert "declared by both a and b" in caplog.text

    def test_mock_catalog_has_no_conflicts(self) -> None:
        assert find_pattern_conflicts(mock_service_records()) == []


class TestSqliteStore:
    def test_empty_path_rejected(self) -> None:
        with pytest.raises(ValueError, match="CATALOG_DB_PATH"):
            SqliteCatalogStore("")

    def test_round_trip_preserves_record(self, sqlite_store: SqliteCatalogStore) -> None:
        original = mock_service_records()[2]
        sqlite_store.upsert_service(original)
        assert sqlite_store.get_service("order-service") == original

    def test_list_in_insertion_order(self, sqlite_store: SqliteCatalogStore) -> None:
        for name in ("zeta", "alpha", "mid"):
            sqlite_store.upsert_service(_record(name))
        assert [s.name for s in sqlite_store.list_services()] == ["zeta", "alpha", "mid"]

    def test_upsert_keeps_position(self, sqlite_store: SqliteCatalogStore) -> None:
        sqlite_store.upsert_service(_record("first"))
        sqlite_store.upsert_service(_record("second"))
        sqlite_store.upsert_service(_record("first", team="moved"))

        services = sqlite_store.list_services()
        assert [s.name for s in services] == ["first", "second"]
        assert services[0].team == "moved"

    def test_filter_by_team(self, sqlite_store: SqliteCatalogStore) -> None:
        sqlite_store.upsert_service(_record("a", team="red"))
        sqlite_store.upsert_service(_record("b", team="blue"))
        assert [s.name for s in sqlite_store.list_services(team="blue")] == ["b"]

    def test_delete(self, sqlite_store: SqliteCatalogStore) -> None:
        sqlite_store.upsert_service(_record("a"))
        assert sqlite_store.delete_service("a") is True
        assert sqlite_store.delete_service("a") is False
        assert sqlite_store.get_service("a") is None

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = str(tmp_path / "catalog.db")
        first = SqliteCatalogStore(path)
        first.upsert_service(_record("durable"))
        first.close()

        second = SqliteCatalogStore(path)
        try:
            assert second.get_service("durable") is not None
        finally:
            second.close()

    def test_healthy(self, sqlite_store: SqliteCatalogStore) -> None:
        assert sqlite_store.check_health() is True

    def test_unopenable_database_is_unavailable(self, tmp_path: Path) -> None:
        store = SqliteCatalogStore(str(tmp_path))
        with pytest.raises(CatalogUnavailableError):
            store.list_services()
        assert store.check_health() is False

    def test_corrupt_row_is_unavailable(self, tmp_path: Path) -> None:
        path = str(tmp_path / "catalog.db")
        store = SqliteCatalogStore(path)
        store.upsert_service(_record("ok"))
        store.close()

        conn = sqlite3.connect(path)
        conn.execute("UPDATE services SET record = ? WHERE name = ?", ('{"team": 1}', "ok"))
        conn.commit()
        conn.close()

        with pytest.raises(CatalogUnavailableError, match="corrupt"):
            store.get_service("ok")
        store.close()
