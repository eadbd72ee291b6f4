"""SQLAlchemy engine factory, session class, and Connection bridge.

Manifesto:
    Repositories, the schema applier and the dynamic data layer all speak
    the ``mms.core.protocols.Connection`` protocol.  ``SAConnectionBridge``
    wraps a SQLAlchemy ``Session`` to satisfy it, so one session (one
    transaction) is shared by raw SQL, DDL and catalog introspection.

This module provides:

* ``create_mms_engine``   -- Create a SA engine from a URL with sane defaults.
* ``get_engine``          -- Process-wide engine cache keyed by URL.
* ``MmsSession``          -- A pre-configured ``Session`` subclass.
* ``SAConnectionBridge``  -- Wraps a SA ``Session`` to satisfy ``Connection``.

Tags:
    mms-core, orm, sqlalchemy, session, engine, bridge, connection

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, inspect, text
from sqlalchemy.engine import Engine, Inspector
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or url.endswith(":memory:")


def create_mms_engine(
    url: str = "sqlite:///mms.db",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, ``mysql+pymysql://…``)
    echo:
        If ``True``, log all SQL to stdout.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if _is_memory_sqlite(url):
            # One shared connection, otherwise every checkout is a new empty DB.
            kwargs.setdefault("poolclass", StaticPool)

        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            # Let SQLAlchemy, not pysqlite, decide when a transaction starts.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            if not _is_memory_sqlite(url):
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin(conn: Any) -> None:
            # Explicit BEGIN so DDL joins the transaction and rolls back with it.
            conn.exec_driver_sql("BEGIN")

        return engine

    pool_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


@lru_cache(maxsize=16)
def get_engine(url: str) -> Engine:
    """Engine for *url*, created once per process and reused."""
    return create_mms_engine(url)


class MmsSession(Session):
    """Pre-configured session with ``expire_on_commit=False``."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def _rewrite_qmarks(sql: str, parameters: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """Convert positional ``?`` placeholders to ``:pN`` binds for ``text()``."""
    rewritten: list[str] = []
    idx = 0
    for ch in sql:
        if ch == "?":
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    return "".join(rewritten), {f"p{i}": v for i, v in enumerate(parameters)}


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Session`` look like ``mms.core.protocols.Connection``.

    * Statements with a mapping of parameters run through ``text()`` with
      ``:name`` binds.
    * Statements with a sequence of parameters have ``?`` rewritten to
      ``:pN`` first.
    * Statements without parameters (DDL in particular) are sent to the
      driver verbatim, so literals such as ``'12:30'`` are never mistaken
      for binds.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._last_result: Any = None

    # --- execute ---

    def execute(
        self,
        sql: str,
        parameters: Mapping[str, Any] | Sequence[Any] | None = None,
    ) -> SAConnectionBridge:
        if parameters is None or (not isinstance(parameters, Mapping) and len(parameters) == 0):
            self._last_result = self._session.connection().exec_driver_sql(sql)
        elif isinstance(parameters, Mapping):
            self._last_result = self._session.execute(text(sql), dict(parameters))
        else:
            rewritten, mapping = _rewrite_qmarks(sql, parameters)
            self._last_result = self._session.execute(text(rewritten), mapping)
        return self

    # --- fetch ---

    def fetchone(self) -> tuple[Any, ...] | None:
        if self._last_result is None or not self._last_result.returns_rows:
            return None
        row = self._last_result.fetchone()
        return tuple(row) if row is not None else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        if self._last_result is None or not self._last_result.returns_rows:
            return []
        return [tuple(r) for r in self._last_result.fetchall()]

    # --- transaction ---

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def close(self) -> None:
        self._session.close()

    # --- properties ---

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        """DB-API 2.0 style description of the last result (names only)."""
        if self._last_result is None or not self._last_result.returns_rows:
            return None
        keys = list(self._last_result.keys())
        return [(k, None, None, None, None, None, None) for k in keys]

    @property
    def rowcount(self) -> int:
        if self._last_result is None:
            return -1
        return self._last_result.rowcount

    @property
    def lastrowid(self) -> int | None:
        if self._last_result is None:
            return None
        return self._last_result.lastrowid

    @property
    def session(self) -> Session:
        """Access the underlying SA session."""
        return self._session

    @property
    def dialect_name(self) -> str:
        """SQLAlchemy dialect name of the bound engine (``sqlite``, ``postgresql``, ...)."""
        return self._session.get_bind().dialect.name

    def inspector(self) -> Inspector:
        """Fresh catalog inspector on the session's own connection.

        A new inspector is returned each time so DDL executed earlier in
        the same transaction is visible.
        """
        return inspect(self._session.connection())
