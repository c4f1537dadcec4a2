"""Load service records from GitOps-style YAML (``service.yaml``) and seed a store."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from oncall.catalog.models import ServiceRecord
from oncall.catalog.store import CatalogStore

logger = logging.getLogger(__name__)


def parse_service_documents(raw: Any, source: str = "<input>") -> list[ServiceRecord]:
    """Validate an already-parsed YAML/JSON document into service records.

    Accepts a single service mapping, a list of them, or a mapping with a
    top-level ``services:`` list.

    Raises:
        ValueError: If the document has the wrong shape or a record fails validation.
    """
    if raw is None:
        return []
    if isinstance(raw, dict) and "services" in raw:
        raw = raw["services"] or []
    documents = raw if isinstance(raw, list) else [raw]

    records: list[ServiceRecord] = []
    for index, doc in enumerate(documents):
        if not isinstance(doc, dict):
            msg = f"{source}: entry {index} is not a mapping"
            raise ValueError(msg)
        try:
            records.append(ServiceRecord.model_validate(doc))
        except ValidationError as exc:
            name = doc.get("name", f"entry {index}")
            msg = f"{source}: invalid service '{name}': {exc}"
            raise ValueError(msg) from exc
    return records


def load_catalog_file(path: str | Path) -> list[ServiceRecord]:
    """Load service records from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the YAML is unparseable or fails validation.
    """
    path = Path(path)
    if not path.is_file():
        msg = f"Catalog file not found: {path}"
        raise FileNotFoundError(msg)
    try:
        raw: Any = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        msg = f"Failed to parse {path.name}: {exc}"
        raise ValueError(msg) from exc
    return parse_service_documents(raw, source=path.name)


def seed_store(store: CatalogStore, records: Iterable[ServiceRecord]) -> int:
    """Upsert records into the store in order. Returns how many were written."""
    count = 0
    for record in records:
        store.upsert_service(record)
        count += 1
    logger.info("Seeded %d service(s) into the catalog", count)
    return count
