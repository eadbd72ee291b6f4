"""Schema version repository: the append-only apply audit trail.

Tags:
    mms-core, repository, schema-versions, audit
"""

from __future__ import annotations

import json
from typing import Any

from mms.core.repository import BaseRepository


class SchemaVersionRepository(BaseRepository):
    """Append and list rows of ``tenant_schema_versions``."""

    TABLE = "tenant_schema_versions"

    def max_version(self, tenant_id: int) -> int:
        value = self.scalar(
            f"SELECT MAX(version) FROM {self.TABLE} WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id},
        )
        return int(value) if value is not None else 0

    def append(
        self,
        tenant_id: int,
        version: int,
        *,
        breaking: bool,
        summary: dict[str, Any],
        notes: list[str],
        applied_by: int | None = None,
    ) -> None:
        self.execute(
            f"INSERT INTO {self.TABLE} "
            "(tenant_id, version, breaking, summary_json, notes_json, applied_by) "
            "VALUES (:tenant_id, :version, :breaking, :summary, :notes, :applied_by)",
            {
                "tenant_id": tenant_id,
                "version": version,
                "breaking": bool(breaking),
                "summary": json.dumps(summary),
                "notes": json.dumps(notes),
                "applied_by": applied_by,
            },
        )

    def list_versions(
        self,
        tenant_id: int,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """Newest first.  Returns ``(rows, total)``."""
        total = self.scalar(
            f"SELECT COUNT(*) FROM {self.TABLE} WHERE tenant_id = :tenant_id",
            {"tenant_id": tenant_id},
        )
        rows = self.query(
            f"SELECT tenant_id, version, breaking, summary_json, notes_json, applied_by, "
            f"created_at FROM {self.TABLE} WHERE tenant_id = :tenant_id "
            "ORDER BY version DESC LIMIT :limit OFFSET :offset",
            {"tenant_id": tenant_id, "limit": limit, "offset": offset},
        )
        for row in rows:
            row["breaking"] = bool(row["breaking"])
            row["summary"] = json.loads(row.pop("summary_json") or "{}")
            row["notes"] = json.loads(row.pop("notes_json") or "[]")
        return rows, int(total or 0)
