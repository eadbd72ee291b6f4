"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and
lifespan events into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root.  Middleware, routers,
    the shared table catalog and lifecycle hooks are wired here so the
    rest of the codebase never touches ``FastAPI`` directly.

Tags:
    mms, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from mms.api.deps import get_settings
from mms.api.middleware.auth import AuthMiddleware
from mms.api.middleware.errors import unhandled_exception_handler
from mms.api.middleware.request_id import RequestIDMiddleware
from mms.api.middleware.timing import TimingMiddleware
from mms.api.routers import data, database, health, schema, structure, tenants
from mms.api.settings import MmsAPISettings
from mms.core.catalog import TableCatalog
from mms.core.connection import create_connection
from mms.core.logging import get_logger

log = get_logger("mms.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: create metadata tables on startup."""
    log.info("mms API starting", version=app.version)

    settings: MmsAPISettings = app.state.settings
    try:
        conn, info = create_connection(
            settings.database_url,
            init_schema=True,
            data_dir=settings.data_dir,
        )
    except SQLAlchemyError as exc:
        log.warning("database_auto_init_failed", error=str(exc))
    else:
        conn.close()
        log.info("database initialized", backend=info.backend)

    yield
    app.state.catalog.clear()
    log.info("mms API shutting down")


def create_app(*, settings: MmsAPISettings | None = None) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : MmsAPISettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings and the per-app catalog on app state
    app.state.settings = settings
    app.state.catalog = TableCatalog(ttl_seconds=settings.catalog_ttl_seconds)

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthMiddleware, api_key=settings.api_key, api_prefix=settings.api_prefix)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    prefix = settings.api_prefix
    app.include_router(health.router, prefix=prefix, tags=["health"])
    app.include_router(database.router, prefix=prefix, tags=["database"])
    app.include_router(tenants.router, prefix=prefix, tags=["tenants"])
    app.include_router(structure.router, prefix=prefix, tags=["structure"])
    app.include_router(schema.router, prefix=prefix, tags=["schema"])
    app.include_router(data.router, prefix=prefix, tags=["data"])

    return app
