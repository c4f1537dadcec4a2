from functools import lru_cache
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Catalog backing store: "mock" serves the built-in fixture, "sqlite" a persistent file
    backend_mode: Literal["mock", "sqlite"] = "mock"
    catalog_db_path: str = ""  # required when backend_mode=sqlite (":memory:" for throwaway stores)

    # Optional YAML catalog upserted into the store at startup (empty = skip)
    catalog_seed_file: str = ""

    # Live-status callouts to team-supplied handler URLs
    handler_timeout_seconds: float = 5.0

    # GitOps sync webhook (empty = signature not checked)
    github_webhook_secret: str = ""

    log_level: str = "INFO"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()
