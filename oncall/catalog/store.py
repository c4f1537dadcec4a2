"""Catalog stores: an in-memory fixture store and a SQLite-backed persistent store.

Both keep services in first-insertion order. That order is what "first match
wins" means during ownership resolution, so an upsert of an existing service
updates it in place instead of moving it to the end.
"""

import logging
import sqlite3
import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol

from pydantic import ValidationError

from oncall.catalog.errors import CatalogUnavailableError
from oncall.catalog.models import ServiceRecord

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    """Read/write interface the resolution engine and the API use."""

    def list_services(self, team: str | None = None) -> list[ServiceRecord]: ...

    def get_service(self, name: str) -> ServiceRecord | None: ...

    def upsert_service(self, record: ServiceRecord) -> None: ...

    def delete_service(self, name: str) -> bool: ...

    def check_health(self) -> bool: ...


def find_pattern_conflicts(records: Iterable[ServiceRecord]) -> list[tuple[str, str, str]]:
    """Return ``(pattern, first_owner, shadowed_owner)`` for every pattern string declared twice.

    Only identical pattern strings are detected; overlapping globs (``ord-*``
    vs ``*``) are left to first-match resolution.
    """
    owners: dict[str, str] = {}
    conflicts: list[tuple[str, str, str]] = []
    for record in records:
        for resource in record.resources:
            first = owners.setdefault(resource.pattern, record.name)
            if first != record.name:
                conflicts.append((resource.pattern, first, record.name))
    return conflicts


def _warn_conflicts(records: Iterable[ServiceRecord]) -> None:
    for pattern, first, shadowed in find_pattern_conflicts(records):
        logger.warning(
            "Resource pattern %r is declared by both %s and %s; %s wins lookups",
            pattern,
            first,
            shadowed,
            first,
        )


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryCatalogStore:
    """Dict-backed store used for mock mode and tests."""

    def __init__(self, records: Iterable[ServiceRecord] = ()) -> None:
        self._services: dict[str, ServiceRecord] = {}
        self._lock = threading.RLock()
        for record in records:
            self._services[record.name] = record
        _warn_conflicts(self._services.values())

    def list_services(self, team: str | None = None) -> list[ServiceRecord]:
        with self._lock:
            services = list(self._services.values())
        if team is not None:
            services = [s for s in services if s.team == team]
        return services

    def get_service(self, name: str) -> ServiceRecord | None:
        with self._lock:
            return self._services.get(name)

    def upsert_service(self, record: ServiceRecord) -> None:
        with self._lock:
            self._services[record.name] = record
            snapshot = list(self._services.values())
        _warn_conflicts(snapshot)

    def delete_service(self, name: str) -> bool:
        with self._lock:
            return self._services.pop(name, None) is not None

    def check_health(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# SQLite store
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS services (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL UNIQUE,
    team        TEXT NOT NULL,
    record      TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_services_team ON services(team);
"""


class SqliteCatalogStore:
    """Persistent store; each service record is kept as a JSON document.

    The connection is opened lazily on first use so a missing or unreadable
    database surfaces as ``CatalogUnavailableError`` from the operation that
    needed it, not at construction time.
    """

    def __init__(self, db_path: str) -> None:
        if not db_path:
            msg = "Catalog store not configured (CATALOG_DB_PATH is empty)"
            raise ValueError(msg)
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if self.db_path != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA_SQL)
            self._conn = conn
        return self._conn

    def _query(self, sql: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self._connection().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise CatalogUnavailableError(f"Catalog database {self.db_path} unavailable: {e}") from e

    def _execute(self, sql: str, params: tuple[object, ...]) -> int:
        try:
            with self._lock:
                conn = self._connection()
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            raise CatalogUnavailableError(f"Catalog database {self.db_path} unavailable: {e}") from e

    def list_services(self, team: str | None = None) -> list[ServiceRecord]:
        if team is not None:
            rows = self._query("SELECT name, record FROM services WHERE team = ? ORDER BY id", (team,))
        else:
            rows = self._query("SELECT name, record FROM services ORDER BY id")
        return [_row_to_record(r) for r in rows]

    def get_service(self, name: str) -> ServiceRecord | None:
        rows = self._query("SELECT name, record FROM services WHERE name = ?", (name,))
        if not rows:
            return None
        return _row_to_record(rows[0])

    def upsert_service(self, record: ServiceRecord) -> None:
        now = datetime.now(UTC).isoformat()
        self._execute(
            """INSERT INTO services (name, team, record, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(name) DO UPDATE SET
                   team = excluded.team,
                   record = excluded.record,
                   updated_at = excluded.updated_at""",
            (record.name, record.team, record.model_dump_json(exclude_none=True), now, now),
        )
        _warn_conflicts(self.list_services())

    def delete_service(self, name: str) -> bool:
        return self._execute("DELETE FROM services WHERE name = ?", (name,)) > 0

    def check_health(self) -> bool:
        try:
            self._query("SELECT 1")
        except CatalogUnavailableError:
            logger.warning("Catalog database health check failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def _row_to_record(row: sqlite3.Row) -> ServiceRecord:
    try:
        return ServiceRecord.model_validate_json(row["record"])
    except ValidationError as e:
        msg = f"Catalog row for service '{row['name']}' is corrupt: {e}"
        raise CatalogUnavailableError(msg) from e
