"""Structure store repository.

One row per tenant holds the serialized structure document and its
revision counter.  The counter starts at 1 on the first save and
increments on every later save.

Tags:
    mms-core, repository, structure-store
"""

from __future__ import annotations

import json
from typing import Any

from mms.core.repository import BaseRepository


class StructureRepository(BaseRepository):
    """Read/write the ``tenant_structures`` table."""

    TABLE = "tenant_structures"

    def get(self, tenant_id: int) -> dict[str, Any] | None:
        """Return ``{tenant_id, version, structure, ...}`` or ``None``."""
        row = self.query_one(
            f"SELECT tenant_id, structure_json, version, created_by, updated_by, "
            f"created_at, updated_at FROM {self.TABLE} WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id},
        )
        if row is None:
            return None
        row["structure"] = json.loads(row.pop("structure_json"))
        return row

    def save(self, tenant_id: int, document: dict[str, Any], *, user_id: int | None = None) -> int:
        """Insert or bump the tenant's structure.  Returns the new version."""
        payload = json.dumps(document, separators=(",", ":"), sort_keys=False)
        current = self.scalar(
            f"SELECT version FROM {self.TABLE} WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id},
        )
        if current is None:
            self.execute(
                f"INSERT INTO {self.TABLE} "
                "(tenant_id, structure_json, version, created_by, updated_by) "
                "VALUES (:tenant_id, :doc, 1, :user_id, :user_id)",
                {"tenant_id": tenant_id, "doc": payload, "user_id": user_id},
            )
            return 1

        version = int(current) + 1
        self.execute(
            f"UPDATE {self.TABLE} SET structure_json = :doc, version = :version, "
            f"updated_by = :user_id, updated_at = {self.dialect.now()} "
            "WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id, "doc": payload, "version": version, "user_id": user_id},
        )
        return version
