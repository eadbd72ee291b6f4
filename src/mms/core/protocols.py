"""
Canonical protocol definitions for mms.

Repositories, the applier and the data access layer depend on the shape
of a connection, never on a driver.  Import protocols from here only.

Tags:
    protocol, connection, database, mms-core, contracts
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """Minimal synchronous connection interface.

    ``execute`` accepts either a mapping (``:name`` placeholders) or a
    sequence (``?`` placeholders) and returns an object exposing
    ``fetchone``/``fetchall``/``description``/``rowcount``.

    Implemented by :class:`mms.core.orm.session.SAConnectionBridge`.
    """

    def execute(self, sql: str, parameters: Mapping[str, Any] | Sequence[Any] | None = None) -> Any:
        """Execute a SQL statement."""
        ...

    def fetchone(self) -> tuple[Any, ...] | None:
        """Fetch one row from the last executed statement."""
        ...

    def fetchall(self) -> list[tuple[Any, ...]]:
        """Fetch all rows from the last executed statement."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Roll back the current transaction."""
        ...


__all__ = ["Connection"]
