"""Settings shared by every mms entry point.

``MmsBaseSettings`` carries the process-level knobs (bind address, log
level, data directory).  ``EngineSettings`` adds what the schema engine and
data access layer need: where the database lives and the limits they
enforce.  Both read ``MMS_``-prefixed environment variables and ``.env``.

Examples:
    >>> from mms.core.settings import EngineSettings
    >>> s = EngineSettings(database_url="sqlite:///tenants.db")
    >>> s.max_list_limit
    500

Tags:
    settings, configuration, pydantic, environment, mms-core
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MmsBaseSettings(BaseSettings):
    """Common settings shared across mms services.

    Fields
    ──────
    host         : Bind address for the HTTP transport
    port         : Bind port for the HTTP transport
    debug        : Enable debug mode (error details in responses)
    log_level    : Structlog log level
    data_dir     : Directory for relative SQLite paths
    """

    model_config = SettingsConfigDict(
        env_prefix="MMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"

    # ── Storage ──────────────────────────────────────────────────
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".mms",
        description="Directory used to resolve relative SQLite paths",
    )


class EngineSettings(MmsBaseSettings):
    """Schema engine and data access knobs."""

    database_url: str = Field(
        default="sqlite:///mms.db",
        description="SQLAlchemy-style connection URL",
    )
    default_list_limit: int = Field(default=100, ge=1, description="Page size when none is given")
    max_list_limit: int = Field(default=500, ge=1, description="Upper clamp for list page size")
    catalog_ttl_seconds: int = Field(
        default=300, ge=0, description="How long introspected table shapes are cached"
    )
    apply_lock_ttl_seconds: int = Field(
        default=300, ge=1, description="Expiry for a tenant's schema apply lock"
    )


@lru_cache(maxsize=1)
def get_engine_settings() -> EngineSettings:
    """Cached engine settings: loaded once per process."""
    return EngineSettings()
