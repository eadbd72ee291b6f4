"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument.  The context carries the database connection, the caller's
identity as established upstream, the shared table catalog and settings.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from mms.core.catalog import TableCatalog
from mms.core.protocols import Connection
from mms.core.settings import EngineSettings


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        conn: Database connection satisfying :class:`mms.core.protocols.Connection`.
        request_id: Unique ID for this operation invocation (auto-generated).
        caller: Origin of the request: ``"api"``, ``"cli"`` or ``"sdk"``.
        user_id: Numeric user id written to audit columns.  Trusted as given.
        dry_run: When ``True``, mutating operations return a preview only.
        catalog: Table catalog shared across requests of one app.
        settings: Engine settings (list limits, lock TTL).  Defaults apply when ``None``.
    """

    conn: Connection
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    user_id: int | None = None
    dry_run: bool = False
    catalog: TableCatalog = field(default_factory=TableCatalog)
    settings: EngineSettings | None = None

    @property
    def engine_settings(self) -> EngineSettings:
        if self.settings is None:
            self.settings = EngineSettings()
        return self.settings
