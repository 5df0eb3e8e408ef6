"""Uploader configuration: Pydantic BaseSettings loaded from .env."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the attachment uploader."""

    app_name: str = "Attachment Uploader"
    debug: bool = False
    log_level: str = "INFO"

    # Local control API
    host: str = "127.0.0.1"
    port: int = 8765
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Remote queue service
    api_base_url: str = "http://localhost:8000"
    access_token: str = ""
    user_id: str = ""
    request_timeout_seconds: float = 30.0

    # Host file store (Zotero storage directory)
    storage_dir: str = "~/Zotero/storage"
    max_file_size_mb: float = 50.0

    # Orchestrator
    max_concurrent_uploads: int = 3
    idle_backoff_base_seconds: float = 2.5
    error_backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 60.0
    max_idle_polls: int = 10
    max_consecutive_errors: int = 5
    error_pause_seconds: float = 60.0
    autostart: bool = False

    # Per-item upload
    upload_max_attempts: int = 3  # in-task PUT attempts
    upload_retry_delay_seconds: float = 2.0  # multiplied by attempt number
    max_server_attempts: int = 3  # server-tracked attempts before permanent failure
    upload_timeout_seconds: float = 300.0

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        env_prefix="UPLOADER_",
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: list[str] | str) -> list[str]:
        if isinstance(value, str) and not value.startswith("["):
            return [o.strip() for o in value.split(",") if o.strip()]
        if isinstance(value, list):
            return value
        return ["http://localhost:5173"]

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Ensure the storage directory is absolute."""
        self.storage_dir = str(Path(self.storage_dir).expanduser().resolve())
        return self

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
