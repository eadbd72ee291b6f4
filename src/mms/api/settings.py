"""
API-specific settings.

Extends :class:`~mms.core.settings.EngineSettings` with parameters that
govern the REST transport (prefix, CORS, auth).

All values can be overridden via environment variables prefixed with
``MMS_`` (``MMS_API_KEY``, ``MMS_CORS_ORIGINS``, ...).
"""

from __future__ import annotations

from pydantic import Field

from mms.core.settings import EngineSettings


class MmsAPISettings(EngineSettings):
    """Settings for the mms REST API.

    Order of precedence (highest → lowest):
        1. Environment variables (``MMS_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="mms API", description="OpenAPI title")
    api_version: str = Field(default="0.3.0", description="OpenAPI version string")

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # ── Auth ─────────────────────────────────────────────────────────────
    api_key: str | None = Field(default=None, description="Optional API key for gating access")
