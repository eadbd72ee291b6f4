"""
FastAPI dependency injection: shared singletons and per-request factories.

Usage in routers::

    from mms.api.deps import OpContext

    @router.get("/tenants/{tenant_id}")
    def show_tenant(ctx: OpContext, tenant_id: int):
        ...

Identity is trusted as given: the numeric ``X-User-Id`` header, when
present, lands on ``ctx.user_id`` and from there in the audit columns.

Tags:
    mms, api, dependency-injection, singletons, OpContext

Doc-Types:
    api-reference
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, Header, Request

from mms.api.settings import MmsAPISettings
from mms.core.catalog import TableCatalog
from mms.core.connection import create_connection
from mms.ops.context import OperationContext

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> MmsAPISettings:
    """Cached settings: loaded once per process."""
    return MmsAPISettings()


# ── Database connection (per-request) ────────────────────────────────────


def get_connection(
    settings: Annotated[MmsAPISettings, Depends(get_settings)],
) -> Generator[Any, None, None]:
    """Yield a database connection for the request lifespan."""
    conn, _info = create_connection(
        settings.database_url,
        data_dir=settings.data_dir,
    )

    try:
        yield conn
    finally:
        conn.close()


# ── Table catalog (per-app) ──────────────────────────────────────────────


def get_catalog(request: Request) -> TableCatalog:
    """The app's shared :class:`TableCatalog`."""
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        settings = request.app.state.settings
        catalog = request.app.state.catalog = TableCatalog(
            ttl_seconds=settings.catalog_ttl_seconds
        )
    return catalog


# ── Operation context (per-request) ──────────────────────────────────────


def _parse_user_id(raw: str | None) -> int | None:
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw.strip())


def get_operation_context(
    request: Request,
    conn: Annotated[Any, Depends(get_connection)],
    settings: Annotated[MmsAPISettings, Depends(get_settings)],
    catalog: Annotated[TableCatalog, Depends(get_catalog)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return OperationContext(
        conn=conn,
        request_id=request_id,
        caller="api",
        user_id=_parse_user_id(x_user_id),
        catalog=catalog,
        settings=settings,
    )


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[MmsAPISettings, Depends(get_settings)]
Conn = Annotated[Any, Depends(get_connection)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
