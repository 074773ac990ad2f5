"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Persistence
    store_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/catalog"
    auto_create_schema: bool = True

    # Tenancy
    default_tenant_id: str | None = None

    # Events
    event_publisher: Literal["log", "http", "memory"] = "log"
    event_bus_url: str = "http://event-bus:8080/publish"
    product_created_topic: str = "product-created"
    event_publish_timeout_seconds: float = 5.0

    # Search
    search_max_page_size: int = 100

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
