"""Per-tenant schema apply lock.

Manifesto:
    Two applies for the same tenant must never interleave their
    "does this column exist / add this column" checks.  A row in
    ``tenant_schema_locks`` serializes them.  Acquisition is a single
    insert-or-ignore, so a competing apply learns immediately that it
    lost.  Locks carry an expiry so a crashed process cannot wedge a
    tenant forever.

The lock row is committed on acquire and deleted (and committed) on
release, so it is visible to other sessions while the apply's own
transaction is still open.

Tags:
    mms-core, locks, TTL, concurrency, schema-apply

Doc-Types:
    api-reference


    Lock Flow::

        apply A ── acquire(7) ──► INSERT OR IGNORE ──► rowcount 1 ──► run plan
        apply B ── acquire(7) ──► INSERT OR IGNORE ──► rowcount 0 ──► ApplyLockedError
        apply A ── release(7) ──► DELETE ... WHERE locked_by = A
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from mms.core.dialect import Dialect
from mms.core.errors import ApplyLockedError
from mms.core.logging import get_logger
from mms.core.protocols import Connection
from mms.core.repository import dialect_for

logger = get_logger(__name__)

LOCK_TABLE = "tenant_schema_locks"


class TenantApplyLock:
    """Database-backed advisory lock keyed by tenant id.

    Example:
        >>> lock = TenantApplyLock(conn, ttl_seconds=300)
        >>> with lock.held(7):
        ...     applier.run(...)
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect | None = None,
        *,
        instance_id: str | None = None,
        ttl_seconds: int = 300,
    ) -> None:
        self.conn = conn
        self.dialect = dialect or dialect_for(conn)
        self.instance_id = instance_id or uuid4().hex
        self.ttl_seconds = ttl_seconds

    def acquire(self, tenant_id: int) -> bool:
        """Try to take the tenant's lock.  Returns False if someone else holds it."""
        now = datetime.now(UTC)
        expires = now + timedelta(seconds=self.ttl_seconds)

        # Expired locks belong to nobody.
        self.conn.execute(
            f"DELETE FROM {LOCK_TABLE} WHERE tenant_id = :tenant_id AND expires_at < :now",
            {"tenant_id": tenant_id, "now": now.isoformat()},
        )
        cursor = self.conn.execute(
            self.dialect.insert_or_ignore(
                LOCK_TABLE, ["tenant_id", "locked_by", "locked_at", "expires_at"]
            ),
            {
                "tenant_id": tenant_id,
                "locked_by": self.instance_id,
                "locked_at": now.isoformat(),
                "expires_at": expires.isoformat(),
            },
        )
        acquired = cursor.rowcount > 0
        self.conn.commit()

        if acquired:
            logger.debug("apply_lock_acquired", tenant_id=tenant_id, holder=self.instance_id)
        else:
            logger.info("apply_lock_busy", tenant_id=tenant_id, holder=self.holder(tenant_id))
        return acquired

    def release(self, tenant_id: int) -> bool:
        """Release the lock if this instance holds it."""
        cursor = self.conn.execute(
            f"DELETE FROM {LOCK_TABLE} WHERE tenant_id = :tenant_id AND locked_by = :holder",
            {"tenant_id": tenant_id, "holder": self.instance_id},
        )
        released = cursor.rowcount > 0
        self.conn.commit()
        if released:
            logger.debug("apply_lock_released", tenant_id=tenant_id)
        return released

    def holder(self, tenant_id: int) -> str | None:
        """Instance id of the current (unexpired) holder, if any."""
        row = self.conn.execute(
            f"SELECT locked_by FROM {LOCK_TABLE} WHERE tenant_id = :tenant_id AND expires_at > :now",
            {"tenant_id": tenant_id, "now": datetime.now(UTC).isoformat()},
        ).fetchone()
        return row[0] if row else None

    def is_locked(self, tenant_id: int) -> bool:
        return self.holder(tenant_id) is not None

    @contextmanager
    def held(self, tenant_id: int) -> Iterator[None]:
        """Hold the lock for the body of a ``with`` block.

        Raises:
            ApplyLockedError: another apply holds the tenant's lock.
        """
        if not self.acquire(tenant_id):
            raise ApplyLockedError(
                f"Schema apply already in progress for tenant {tenant_id}"
            ).with_context(tenant_id=tenant_id)
        try:
            yield
        finally:
            self.release(tenant_id)


__all__ = ["LOCK_TABLE", "TenantApplyLock"]
