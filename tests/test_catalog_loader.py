"""Tests for loading service.yaml files and seeding stores."""

from pathlib import Path

import pytest

from oncall.catalog.loader import load_catalog_file, parse_service_documents, seed_store
from oncall.catalog.store import InMemoryCatalogStore

SERVICE_YAML = """\
name: billing-service
description: Issues invoices. Talks to the payment provider.
team: payments
slack_channel: "#payments-oncall"
dependencies:
  - name: user-service
    type: internal
    critical: true
resources:
  - pattern: "inv-bill-*"
    type: invoice
    handler_url: "https://billing.internal/resources/${id}"
"""

CATALOG_YAML = """\
services:
  - name: a-service
    team: red
  - name: b-service
    team: blue
"""


class TestParseServiceDocuments:
    def test_single_mapping(self) -> None:
        records = parse_service_documents({"name": "x", "team": "t"})
        assert [r.name for r in records] == ["x"]

    def test_list_of_mappings(self) -> None:
        records = parse_service_documents([{"name": "x", "team": "t"}, {"name": "y", "team": "t"}])
        assert [r.name for r in records] == ["x", "y"]

    def test_services_key(self) -> None:
        records = parse_service_documents({"services": [{"name": "x", "team": "t"}]})
        assert [r.name for r in records] == ["x"]

    def test_empty_document(self) -> None:
        assert parse_service_documents(None) == []
        assert parse_service_documents({"services": None}) == []

    def test_non_mapping_entry_rejected(self) -> None:
        with pytest.raises(ValueError, match="entry 1 is not a mapping"):
            parse_service_documents([{"name": "x", "team": "t"}, "oops"], source="catalog.yaml")

    def test_invalid_record_names_service(self) -> None:
        with pytest.raises(ValueError, match="invalid service 'x'"):
            parse_service_documents({"name": "x"})


class TestLoadCatalogFile:
    def test_service_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "service.yaml"
        path.write_text(SERVICE_YAML)

        (record,) = load_catalog_file(path)

        assert record.name == "billing-service"
        assert record.depends_on("user-service")
        assert record.resources[0].handler_url_for("inv-bill-9") == "https://billing.internal/resources/inv-bill-9"

    def test_catalog_yaml_keeps_order(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.yaml"
        path.write_text(CATALOG_YAML)
        assert [r.name for r in load_catalog_file(path)] == ["a-service", "b-service"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_catalog_file(tmp_path / "nope.yaml")

    def test_unparseable_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(ValueError, match="Failed to parse broken.yaml"):
            load_catalog_file(path)


class TestSeedStore:
    def test_seeds_in_order(self, tmp_path: Path) -> None:
        path = tmp_path / "catalog.yaml"
        path.write_text(CATALOG_YAML)
        store = InMemoryCatalogStore()

        written = seed_store(store, load_catalog_file(path))

        assert written == 2
        assert [s.name for s in store.list_services()] == ["a-service", "b-service"]
