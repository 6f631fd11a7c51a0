"""
Tutorials API: Application Configuration
========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and exposes a module-level `settings` object.
Who:   Imported by the application factory and the lifecycle controller.
When:  Loaded once at import time. Values are read once at startup; changing
       the environment afterwards has no effect on a running server.

Environment variables:
    PORT                 Listen port (default 8080)
    CORS_ORIGIN          Comma-separated CORS allow-list (default http://localhost:4200)
    MONGODB_URL          MongoDB connection string (DATABASE_URL also accepted)
"""

from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development against a
    MongoDB instance on localhost.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: mongodb://[user:password@]host[:port]/[database][?options]
    mongodb_url: str = Field(
        default="mongodb://localhost:27017/tutorials_db",
        validation_alias=AliasChoices("mongodb_url", "database_url"),
        description="MongoDB connection string",
    )

    # Used only when the connection string does not name a database
    mongodb_database: str = Field(default="tutorials_db", min_length=1)

    db_max_pool_size: int = Field(default=10, ge=1, le=500)

    # Bounds the startup ping. The connector fails fast instead of retrying,
    # so this is the longest the process waits before exiting with status 1.
    db_server_selection_timeout_ms: int = Field(default=5000, ge=100, le=120_000)

    # ── HTTP ──────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # Applies to every request body, whatever its content type (10 KB)
    max_body_size: int = Field(default=10_240, ge=1)

    # Seconds uvicorn waits for in-flight requests on shutdown.
    # None waits until every request has completed.
    shutdown_timeout: Optional[int] = Field(default=None, ge=1)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origin: str = Field(default="http://localhost:4200")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits the comma-separated allow-list, dropping blank entries."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    # ── Logging ───────────────────────────────────────────────────────────
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # Per-IP sliding window. Off unless RATE_LIMIT_ENABLED=true.
    rate_limit_enabled: bool = Field(default=False)
    rate_limit_requests: int = Field(default=100, ge=1, le=100_000)
    rate_limit_window: int = Field(default=3600, ge=1, le=86400)  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


settings = Settings()
