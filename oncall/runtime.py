"""Process wiring: builds the catalog store, resolver, handler registry and lookup once.

The resulting ``Runtime`` is passed explicitly to the agent tools, the REST
API and the CLI. Nothing here is a module-level singleton.
"""

import logging
from dataclasses import dataclass

from oncall.catalog.fixtures import mock_service_records
from oncall.catalog.loader import load_catalog_file, seed_store
from oncall.catalog.store import CatalogStore, InMemoryCatalogStore, SqliteCatalogStore
from oncall.config import Settings, get_settings
from oncall.resources.lookup import DEFAULT_HANDLER_TIMEOUT_SECONDS, ResourceLookup
from oncall.resources.registry import HandlerRegistry
from oncall.resources.resolver import OwnershipResolver

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    store: CatalogStore
    resolver: OwnershipResolver
    registry: HandlerRegistry
    lookup: ResourceLookup


def build_store(settings: Settings) -> CatalogStore:
    """Create the catalog store for the configured backend mode."""
    if settings.backend_mode == "sqlite":
        logger.info("Using SQLite catalog store at %s", settings.catalog_db_path)
        return SqliteCatalogStore(settings.catalog_db_path)
    logger.info("Using in-memory mock catalog")
    return InMemoryCatalogStore(mock_service_records())


def create_runtime(store: CatalogStore, handler_timeout: float = DEFAULT_HANDLER_TIMEOUT_SECONDS) -> Runtime:
    """Wire the resolution engine around an existing store."""
    resolver = OwnershipResolver(store)
    registry = HandlerRegistry(resolver)
    lookup = ResourceLookup(resolver, registry, timeout=handler_timeout)
    return Runtime(store=store, resolver=resolver, registry=registry, lookup=lookup)


def build_runtime(settings: Settings | None = None) -> Runtime:
    """Build the runtime from settings, seeding the store from CATALOG_SEED_FILE if set."""
    settings = settings or get_settings()
    store = build_store(settings)
    if settings.catalog_seed_file:
        seed_store(store, load_catalog_file(settings.catalog_seed_file))
    return create_runtime(store, handler_timeout=settings.handler_timeout_seconds)
