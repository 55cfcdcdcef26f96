"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration with sensible defaults."""

    mongodb_uri: str = Field(default="", alias="MONGODB_URI")
    mongodb_database: str = Field(default="nextrade", alias="MONGODB_DATABASE")
    mongodb_collection: str = Field(default="products", alias="MONGODB_COLLECTION")
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000, alias="MONGODB_SERVER_SELECTION_TIMEOUT_MS"
    )
    service_name: str = Field(default="NexTrade", alias="SERVICE_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    metrics_enabled: bool = Field(default=True, alias="METRICS_ENABLED")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")
    expose_error_detail: bool = Field(default=False, alias="EXPOSE_ERROR_DETAIL")
    stamp_created_at: bool = Field(default=True, alias="STAMP_CREATED_AT")
    max_request_size_bytes: int = Field(default=1_048_576, alias="MAX_REQUEST_SIZE_BYTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def live_message(self) -> str:
        return f"{self.service_name} API is live"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
