"""
Declarative structure model.

A tenant's structure is one document::

    {
      "nodeTypes": [{"key": "machine", "label": "Machine", "displayAttr": "name",
                     "attributes": [{"key": "name", "type": "string", "required": true}]}],
      "rules":     [{"parent": "line", "child": "machine"}],
      "tree":      {"id": "root", "type": "root", "children": [...]}
    }

This module parses and validates that document into immutable
dataclasses and serializes it back.  It performs no I/O.

Manifesto:
    Validation collects *every* problem with a dotted path
    (``root.children[0].attrs.name``) instead of failing on the first, so
    a caller can fix a structure in one round trip.

Tags:
    structure, domain-model, validation, mms-core
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mms.core.errors import FieldError, ValidationError
from mms.core.identifiers import sanitize_ident

ROOT_TYPE = "root"

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


class AttributeType(str, Enum):
    """Declared value type of an attribute."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    JSON = "json"
    ENUM = "enum"


@dataclass(frozen=True, slots=True)
class AttributeDefinition:
    """One attribute of a node type."""

    key: str
    label: str = ""
    type: AttributeType = AttributeType.STRING
    required: bool = False
    values: tuple[str, ...] = ()

    @property
    def column(self) -> str:
        """Physical column name."""
        return sanitize_ident(self.key)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "type": self.type.value,
            "required": self.required,
        }
        if self.type is AttributeType.ENUM:
            d["values"] = list(self.values)
        return d


@dataclass(frozen=True, slots=True)
class TypeDefinition:
    """A declared node type (``line``, ``machine``, ...)."""

    key: str
    label: str = ""
    display_attr: str = "name"
    attributes: tuple[AttributeDefinition, ...] = ()

    def attribute(self, key: str) -> AttributeDefinition | None:
        for attr in self.attributes:
            if attr.key == key:
                return attr
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "displayAttr": self.display_attr,
            "attributes": [a.to_dict() for a in self.attributes],
        }


@dataclass(frozen=True, slots=True)
class Rule:
    """Explicit parent → child relationship."""

    parent: str
    child: str

    def to_dict(self) -> dict[str, str]:
        return {"parent": self.parent, "child": self.child}


@dataclass(frozen=True, slots=True)
class TreeNode:
    """An instance node in the tenant's tree."""

    id: str
    type: str
    attrs: dict[str, Any] = field(default_factory=dict)
    children: tuple[TreeNode, ...] = ()

    @property
    def is_root(self) -> bool:
        return self.type == ROOT_TYPE

    def walk(self) -> Iterator[tuple[TreeNode | None, TreeNode]]:
        """Yield ``(parent, node)`` pairs in pre-order, starting at self."""
        stack: list[tuple[TreeNode | None, TreeNode]] = [(None, self)]
        while stack:
            parent, node = stack.pop()
            yield parent, node
            for child in reversed(node.children):
                stack.append((node, child))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "attrs": dict(self.attrs),
            "children": [c.to_dict() for c in self.children],
        }


def _empty_root() -> TreeNode:
    return TreeNode(id="root", type=ROOT_TYPE)


@dataclass(frozen=True, slots=True)
class Structure:
    """The aggregate document: node types, rules, and the instance tree."""

    node_types: tuple[TypeDefinition, ...] = ()
    rules: tuple[Rule, ...] = ()
    tree: TreeNode = field(default_factory=_empty_root)

    def get_type(self, key: str) -> TypeDefinition | None:
        for t in self.node_types:
            if t.key == key:
                return t
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodeTypes": [t.to_dict() for t in self.node_types],
            "rules": [r.to_dict() for r in self.rules],
            "tree": self.tree.to_dict(),
        }


# ── Defaults ─────────────────────────────────────────────────────────────

DEFAULT_TYPE_KEYS: tuple[str, ...] = ("line", "machine", "project", "unit", "subunit", "subline")


def default_structure() -> Structure:
    """Structure served to tenants that never saved one."""
    return Structure(
        node_types=tuple(
            TypeDefinition(
                key=key,
                label=key.capitalize(),
                attributes=(
                    AttributeDefinition(key="name", label="Name", required=True),
                ),
            )
            for key in DEFAULT_TYPE_KEYS
        ),
        rules=(),
        tree=_empty_root(),
    )


# ── Value checks ─────────────────────────────────────────────────────────


def value_matches(attr: AttributeDefinition, value: Any) -> bool:
    """Return True when *value* is a well-typed value for *attr*."""
    kind = attr.type
    if kind is AttributeType.STRING:
        return isinstance(value, str)
    if kind is AttributeType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is AttributeType.NUMBER:
        return isinstance(value, int | float) and not isinstance(value, bool)
    if kind is AttributeType.BOOLEAN:
        return isinstance(value, bool)
    if kind is AttributeType.DATE:
        return isinstance(value, str) and bool(_DATE_PREFIX.match(value))
    if kind is AttributeType.JSON:
        return isinstance(value, list | dict)
    if kind is AttributeType.ENUM:
        return isinstance(value, str) and value in attr.values
    return True


def is_blank(value: Any) -> bool:
    return value is None or value == ""


# ── Parsing + validation ─────────────────────────────────────────────────


class _Collector:
    """Accumulates field errors while a document is parsed."""

    def __init__(self) -> None:
        self.errors: list[FieldError] = []

    def add(self, path: str, message: str) -> None:
        self.errors.append(FieldError(field=path, message=message))


def unwrap_structure_payload(payload: Any) -> Any:
    """Accept both ``{"structure": {...}}`` and a bare structure document."""
    if isinstance(payload, Mapping) and isinstance(payload.get("structure"), Mapping):
        return payload["structure"]
    return payload


def _parse_attribute(raw: Any, path: str, errs: _Collector) -> AttributeDefinition | None:
    if not isinstance(raw, Mapping):
        errs.add(path, "Attribute must be an object")
        return None
    key = raw.get("key")
    if not isinstance(key, str) or not key.strip():
        errs.add(f"{path}.key", "Attribute key is required")
        return None
    raw_type = raw.get("type", AttributeType.STRING.value)
    try:
        kind = AttributeType(raw_type)
    except ValueError:
        errs.add(f"{path}.type", f"Unknown attribute type '{raw_type}'")
        return None
    values: tuple[str, ...] = ()
    if kind is AttributeType.ENUM:
        raw_values = raw.get("values", [])
        if not isinstance(raw_values, list) or not all(isinstance(v, str) for v in raw_values):
            errs.add(f"{path}.values", "Enum values must be a list of strings")
        else:
            values = tuple(raw_values)
    return AttributeDefinition(
        key=key,
        label=str(raw.get("label") or key),
        type=kind,
        required=bool(raw.get("required", False)),
        values=values,
    )


def _parse_type(raw: Any, path: str, errs: _Collector) -> TypeDefinition | None:
    if not isinstance(raw, Mapping):
        errs.add(path, "Node type must be an object")
        return None
    key = raw.get("key")
    if not isinstance(key, str) or not key.strip():
        errs.add(f"{path}.key", "nodeType.key is required")
        return None
    if key == ROOT_TYPE:
        errs.add(f"{path}.key", f"'{ROOT_TYPE}' is reserved")
        return None

    raw_attrs = raw.get("attributes", [])
    if not isinstance(raw_attrs, list):
        errs.add(f"{path}.attributes", "attributes must be an array")
        raw_attrs = []

    attrs: list[AttributeDefinition] = []
    seen: set[str] = set()
    for i, raw_attr in enumerate(raw_attrs):
        attr = _parse_attribute(raw_attr, f"{path}.attributes[{i}]", errs)
        if attr is None:
            continue
        if attr.key in seen:
            errs.add(f"{path}.attributes[{i}].key", f"Duplicate attribute key '{attr.key}'")
            continue
        seen.add(attr.key)
        attrs.append(attr)

    return TypeDefinition(
        key=key,
        label=str(raw.get("label") or key),
        display_attr=str(raw.get("displayAttr") or "name"),
        attributes=tuple(attrs),
    )


def _parse_node(
    raw: Any,
    path: str,
    types: Mapping[str, TypeDefinition],
    errs: _Collector,
) -> TreeNode | None:
    if not isinstance(raw, Mapping):
        errs.add(path, "Tree node must be an object")
        return None

    node_type = raw.get("type")
    attrs = raw.get("attrs") or {}
    if not isinstance(attrs, Mapping):
        errs.add(f"{path}.attrs", "attrs must be an object")
        attrs = {}

    if node_type != ROOT_TYPE:
        definition = types.get(node_type) if isinstance(node_type, str) else None
        if definition is None:
            errs.add(path, f"Unknown node type at {path}: {node_type!r}")
        else:
            for attr in definition.attributes:
                value = attrs.get(attr.key)
                if is_blank(value):
                    if attr.required:
                        errs.add(f"{path}.attrs.{attr.key}", f"Missing required attribute '{attr.key}'")
                    continue
                if not value_matches(attr, value):
                    errs.add(
                        f"{path}.attrs.{attr.key}",
                        f"Type mismatch: expected {attr.type.value}",
                    )

    raw_children = raw.get("children", [])
    if not isinstance(raw_children, list):
        errs.add(f"{path}.children", "children must be an array")
        raw_children = []

    children: list[TreeNode] = []
    for i, raw_child in enumerate(raw_children):
        child = _parse_node(raw_child, f"{path}.children[{i}]", types, errs)
        if child is not None:
            children.append(child)

    return TreeNode(
        id=str(raw.get("id") if raw.get("id") is not None else ""),
        type=str(node_type),
        attrs=dict(attrs),
        children=tuple(children),
    )


def parse_structure(payload: Any) -> Structure:
    """Validate a raw structure document and return the parsed model.

    Raises:
        ValidationError: listing every problem found, each with its path.
    """
    data = unwrap_structure_payload(payload)
    errs = _Collector()

    if not isinstance(data, Mapping):
        raise ValidationError("Structure must be an object", field="structure")

    raw_types = data.get("nodeTypes", [])
    raw_rules = data.get("rules", [])
    raw_tree = data.get("tree", {"id": "root", "type": ROOT_TYPE, "children": []})

    if not isinstance(raw_types, list):
        errs.add("nodeTypes", "nodeTypes must be an array")
        raw_types = []
    if not isinstance(raw_rules, list):
        errs.add("rules", "rules must be an array")
        raw_rules = []
    if not isinstance(raw_tree, Mapping):
        errs.add("tree", "tree must be an object")
        raw_tree = {"id": "root", "type": ROOT_TYPE, "children": []}

    types: dict[str, TypeDefinition] = {}
    ordered: list[TypeDefinition] = []
    for i, raw_type in enumerate(raw_types):
        parsed = _parse_type(raw_type, f"nodeTypes[{i}]", errs)
        if parsed is None:
            continue
        if parsed.key in types:
            errs.add(f"nodeTypes[{i}].key", f"Duplicate nodeType.key '{parsed.key}'")
            continue
        types[parsed.key] = parsed
        ordered.append(parsed)

    rules: list[Rule] = []
    for i, raw_rule in enumerate(raw_rules):
        if not isinstance(raw_rule, Mapping):
            errs.add(f"rules[{i}]", "Rule must be an object")
            continue
        parent, child = raw_rule.get("parent"), raw_rule.get("child")
        ok = True
        for end, value in (("parent", parent), ("child", child)):
            if not isinstance(value, str) or value not in types:
                errs.add(f"rules[{i}].{end}", f"Rule {end} {value!r} is not a defined node type")
                ok = False
        if ok:
            rules.append(Rule(parent=parent, child=child))

    if raw_tree.get("type", ROOT_TYPE) != ROOT_TYPE:
        errs.add("tree.type", f"tree root must have type '{ROOT_TYPE}'")
    tree = _parse_node({"id": "root", **raw_tree, "type": ROOT_TYPE}, "root", types, errs) or _empty_root()

    if errs.errors:
        raise ValidationError(
            f"Structure is invalid ({len(errs.errors)} problem(s))",
            errors=errs.errors,
        )

    return Structure(node_types=tuple(ordered), rules=tuple(rules), tree=tree)


__all__ = [
    "ROOT_TYPE",
    "AttributeType",
    "AttributeDefinition",
    "TypeDefinition",
    "Rule",
    "TreeNode",
    "Structure",
    "DEFAULT_TYPE_KEYS",
    "default_structure",
    "value_matches",
    "is_blank",
    "unwrap_structure_payload",
    "parse_structure",
]
