"""Structure documents and setup helpers used across the test suite."""

from __future__ import annotations

import copy
from typing import Any

from mms.core.applier import ApplyResult, SchemaApplier
from mms.core.repositories import StructureRepository, TenantRepository
from mms.core.structure import parse_structure

LINE = {
    "key": "line",
    "label": "Line",
    "attributes": [{"key": "name", "label": "Name", "type": "string", "required": True}],
}

MACHINE = {
    "key": "machine",
    "label": "Machine",
    "attributes": [
        {"key": "name", "type": "string", "required": True},
        {"key": "serial", "type": "string"},
        {"key": "power", "type": "number"},
        {"key": "active", "type": "boolean"},
        {"key": "installed", "type": "date"},
        {"key": "specs", "type": "json"},
        {"key": "status", "type": "enum", "values": ["running", "stopped"]},
    ],
}

PROJECT = {
    "key": "project",
    "label": "Project",
    "attributes": [{"key": "name", "type": "string", "required": True}],
}


def node(node_id: str, node_type: str, children: list[dict[str, Any]] | None = None, **attrs: Any) -> dict[str, Any]:
    return {"id": node_id, "type": node_type, "attrs": attrs, "children": children or []}


def plant_structure() -> dict[str, Any]:
    """line → machine, one of each in the tree; ``project`` declared but unused."""
    return {
        "nodeTypes": [copy.deepcopy(LINE), copy.deepcopy(MACHINE), copy.deepcopy(PROJECT)],
        "rules": [{"parent": "line", "child": "machine"}],
        "tree": node("root", "root", [node("n1", "line", [node("n2", "machine", name="M1")], name="L1")]),
    }


def with_attribute(doc: dict[str, Any], type_key: str, attr: dict[str, Any]) -> dict[str, Any]:
    """Copy of *doc* with *attr* appended to *type_key*'s attributes."""
    out = copy.deepcopy(doc)
    for t in out["nodeTypes"]:
        if t["key"] == type_key:
            t["attributes"].append(attr)
    return out


def register(conn: Any, name: str = "acme") -> int:
    tenant_id = TenantRepository(conn).create(name)
    conn.commit()
    return tenant_id


def save(conn: Any, tenant_id: int, doc: dict[str, Any]) -> int:
    version = StructureRepository(conn).save(tenant_id, parse_structure(doc).to_dict())
    conn.commit()
    return version


def save_and_apply(conn: Any, tenant_id: int, doc: dict[str, Any], **kwargs: Any) -> ApplyResult:
    save(conn, tenant_id, doc)
    return SchemaApplier(conn).apply_structure(tenant_id, parse_structure(doc), **kwargs)
