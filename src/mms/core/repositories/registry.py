"""Table registry repository.

Maps ``(tenant, type key)`` to the physical table the applier created.
Rows are only ever written by the schema applier.

Tags:
    mms-core, repository, table-registry
"""

from __future__ import annotations

from mms.core.repository import BaseRepository


class TableRegistryRepository(BaseRepository):
    """Read/upsert the ``tenant_table_registry`` table."""

    TABLE = "tenant_table_registry"

    def lookup(self, tenant_id: int, type_key: str) -> str | None:
        return self.scalar(
            f"SELECT table_name FROM {self.TABLE} "
            "WHERE tenant_id = :tenant_id AND type_key = :type_key",
            {"tenant_id": tenant_id, "type_key": type_key},
        )

    def mapping(self, tenant_id: int) -> dict[str, str]:
        rows = self.query(
            f"SELECT type_key, table_name FROM {self.TABLE} "
            "WHERE tenant_id = :tenant_id ORDER BY type_key",
            {"tenant_id": tenant_id},
        )
        return {r["type_key"]: r["table_name"] for r in rows}

    def upsert(self, tenant_id: int, type_key: str, table_name: str) -> None:
        """Insert the entry, or repoint it and refresh ``updated_at``."""
        sql = self.dialect.upsert(
            self.TABLE,
            ["tenant_id", "type_key", "table_name"],
            ["tenant_id", "type_key"],
            touch="updated_at",
        )
        self.execute(sql, {"tenant_id": tenant_id, "type_key": type_key, "table_name": table_name})
