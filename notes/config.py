"""Application settings loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

StorageBackendName = Literal["memory", "file", "redis", "sql", "none"]


class Settings(BaseSettings):
    """Notes settings loaded from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="NOTES_", extra="ignore"
    )

    # Storage
    storage_backend: StorageBackendName = "file"
    storage_path: Path = Path("data") / "notes_store.json"
    storage_key: str = "notes.v1"

    # Redis
    redis_url: str = "redis://localhost:6379"
    redis_prefix: str = "notes:"

    # SQL (SQLite by default)
    database_url: str = "sqlite:///data/notes.db"

    # MCP server
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8001

    log_level: str = "INFO"
