"""Shared pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest

from oncall.catalog.fixtures import mock_service_records
from oncall.catalog.store import InMemoryCatalogStore
from oncall.config import Settings, get_settings
from oncall.runtime import Runtime, create_runtime


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run e2e tests that hit real services (requires .env with valid settings)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="Need --run-e2e flag to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def _no_dotenv(request: pytest.FixtureRequest) -> Generator[None]:
    """Block .env loading so a developer's local settings can't leak into tests.

    Sets Settings.model_config['env_file'] = None before each test (except e2e).
    """
    if "e2e" in request.keywords:
        yield
        return

    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings() -> Generator[Any]:
    """Provide fake settings so tests don't depend on the environment.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "backend_mode": "mock",
            "catalog_db_path": "",
            "catalog_seed_file": "",
            "handler_timeout_seconds": 5.0,
            "github_webhook_secret": "",
            "log_level": "WARNING",
        },
    )()
    with (
        patch("oncall.config.get_settings", return_value=fake_settings),
        patch("oncall.runtime.get_settings", return_value=fake_settings),
        patch("oncall.api.main.get_settings", return_value=fake_settings),
        patch("oncall.cli.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


@pytest.fixture
def catalog_store() -> InMemoryCatalogStore:
    """The built-in mock catalog: user-, auth-, order- and inventory-service, in that order."""
    return InMemoryCatalogStore(mock_service_records())


@pytest.fixture
def runtime(catalog_store: InMemoryCatalogStore) -> Runtime:
    return create_runtime(catalog_store)
