"""Connection factory: create database connections from URL strings.

This is the **single entry point** for creating database connections in
mms.  Every transport (API, CLI, tests) calls ``create_connection()``
rather than building engines or sessions itself.

Supported URL forms
-------------------
==========================  ==========================================  ============
Form                        Example                                     Backend
==========================  ==========================================  ============
``memory`` / ``None``       ``memory`` or ``:memory:``                  SQLite RAM
``sqlite``                  ``sqlite:///path/to/file.db``               SQLite file
``(file path)``             ``./data/mms.db``                           SQLite file
``postgresql``              ``postgresql://user:pw@host:5432/db``        PostgreSQL
``mysql``                   ``mysql+pymysql://user:pw@host/db``          MySQL
==========================  ==========================================  ============

Every backend goes through SQLAlchemy: ``create_connection()`` returns an
:class:`~mms.core.orm.session.SAConnectionBridge` over a fresh session on
a cached engine, plus a :class:`ConnectionInfo` describing it.

Usage
-----
::

    from mms.core.connection import create_connection

    conn, info = create_connection("sqlite:///tenants.db", init_schema=True)
    print(info)
    # ConnectionInfo(backend='sqlite', persistent=True, path='/abs/tenants.db')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mms.core.logging import get_logger
from mms.core.orm.base import MmsBase
from mms.core.orm.session import MmsSession, SAConnectionBridge, get_engine

logger = get_logger(__name__)


# ── ConnectionInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionInfo:
    """Metadata about a database connection."""

    backend: str
    """Backend identifier: ``"sqlite"``, ``"postgresql"``, ``"mysql"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The SQLAlchemy URL the engine was created from."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={_mask(self.url)!r}")
        return f"ConnectionInfo({', '.join(parts)})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"


def _mask(url: str) -> str:
    """Hide the password component of a URL."""
    if "://" not in url or "@" not in url:
        return url
    scheme, rest = url.split("://", 1)
    creds, host = rest.rsplit("@", 1)
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


# ── URL normalisation ────────────────────────────────────────────────────


def normalize_url(db: str | None, *, data_dir: str | Path | None = None) -> tuple[str, str | None]:
    """Turn a URL, path or keyword into ``(sqlalchemy_url, resolved_sqlite_path)``."""
    if db is None or db in ("", "memory", ":memory:", "sqlite://", "sqlite:///:memory:"):
        return "sqlite://", None

    if db.startswith("sqlite:///"):
        path_str = db[len("sqlite:///"):]
    elif "://" in db:
        if db.startswith("postgres://"):
            db = "postgresql://" + db[len("postgres://"):]
        return db, None
    else:
        path_str = db

    path = Path(path_str).expanduser()
    if not path.is_absolute() and data_dir is not None:
        path = Path(data_dir).expanduser() / path
    path.parent.mkdir(parents=True, exist_ok=True)
    resolved = str(path.resolve())
    return f"sqlite:///{resolved}", resolved


# ── Schema bootstrap ─────────────────────────────────────────────────────


def init_metadata_schema(conn: SAConnectionBridge) -> list[str]:
    """Create the engine's metadata tables if missing (idempotent)."""
    MmsBase.metadata.create_all(bind=conn.session.connection())
    conn.commit()
    return sorted(MmsBase.metadata.tables)


# ── Main factory ─────────────────────────────────────────────────────────


def create_connection(
    db: str | None = None,
    *,
    init_schema: bool = False,
    data_dir: str | Path | None = None,
) -> tuple[SAConnectionBridge, ConnectionInfo]:
    """Create a database connection from a URL, path, or keyword.

    Parameters
    ----------
    db:
        Database URL, file path, or ``None``/``"memory"`` for in-memory SQLite.
    init_schema:
        If ``True``, create the metadata tables (idempotent).
    data_dir:
        For relative SQLite paths, resolve within this directory.

    Returns
    -------
    tuple[SAConnectionBridge, ConnectionInfo]
    """
    url, resolved = normalize_url(db, data_dir=data_dir)
    engine = get_engine(url)
    conn = SAConnectionBridge(MmsSession(bind=engine))

    info = ConnectionInfo(
        backend=engine.dialect.name,
        persistent=url != "sqlite://",
        url=url,
        resolved_path=resolved,
    )

    if init_schema:
        tables = init_metadata_schema(conn)
        logger.debug("metadata_schema_ready", tables=len(tables), backend=info.backend)

    return conn, info


__all__ = [
    "ConnectionInfo",
    "create_connection",
    "init_metadata_schema",
    "normalize_url",
]
