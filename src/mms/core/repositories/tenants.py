"""Tenant repository.

Tags:
    mms-core, repository, tenants
"""

from __future__ import annotations

from typing import Any

from mms.core.repository import BaseRepository


class TenantRepository(BaseRepository):
    """Minimal access to the ``tenants`` table."""

    TABLE = "tenants"

    def create(self, name: str) -> int | None:
        return self.insert(self.TABLE, {"name": name})

    def get(self, tenant_id: int) -> dict[str, Any] | None:
        return self.query_one(
            f"SELECT id, name, created_at FROM {self.TABLE} WHERE id = :id",
            {"id": tenant_id},
        )

    def get_by_name(self, name: str) -> dict[str, Any] | None:
        return self.query_one(
            f"SELECT id, name, created_at FROM {self.TABLE} WHERE name = :name",
            {"name": name},
        )

    def exists(self, tenant_id: int) -> bool:
        return self.get(tenant_id) is not None

    def list_tenants(self, *, limit: int = 50, offset: int = 0) -> tuple[list[dict[str, Any]], int]:
        """List tenants.  Returns ``(rows, total)``."""
        total = self.scalar(f"SELECT COUNT(*) FROM {self.TABLE}") or 0
        rows = self.query(
            f"SELECT id, name, created_at FROM {self.TABLE} "
            "ORDER BY id LIMIT :limit OFFSET :offset",
            {"limit": limit, "offset": offset},
        )
        return rows, int(total)
