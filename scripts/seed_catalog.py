"""Seed the persistent catalog from one or more service.yaml / catalog YAML files.

Usage:
    BACKEND_MODE=sqlite CATALOG_DB_PATH=catalog.db uv run python -m scripts.seed_catalog services/*.yaml
"""

import logging
import sys

from oncall.catalog.loader import load_catalog_file, seed_store
from oncall.catalog.store import SqliteCatalogStore
from oncall.config import get_settings

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main() -> None:
    """Load every file given on the command line into the SQLite catalog."""
    paths = sys.argv[1:]
    if not paths:
        logger.error("Usage: python -m scripts.seed_catalog FILE [FILE ...]")
        sys.exit(2)

    settings = get_settings()
    if settings.backend_mode != "sqlite":
        logger.error("BACKEND_MODE must be 'sqlite' to seed a persistent catalog (got %r)", settings.backend_mode)
        sys.exit(1)

    store = SqliteCatalogStore(settings.catalog_db_path)
    try:
        total = 0
        for path in paths:
            try:
                records = load_catalog_file(path)
            except (FileNotFoundError, ValueError) as e:
                logger.error("%s", e)
                sys.exit(1)
            logger.info("Loaded %d service(s) from %s", len(records), path)
            total += seed_store(store, records)
        logger.info("Done! Catalog now holds %d service(s) (%d written)", len(store.list_services()), total)
    finally:
        store.close()


if __name__ == "__main__":
    main()
