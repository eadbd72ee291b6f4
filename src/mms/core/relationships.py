"""
Relationship resolution: who is whose parent.

The authoritative child → parent map is derived from two ordered inputs:

1. the explicit ``rules`` list, in order;
2. the parent → child edges observed walking the instance tree in
   pre-order (edges from ``root`` and self-loops are ignored).

Both feed the same first-seen-wins merge.  A child that is later seen
with a *different* parent is marked ambiguous: it keeps no single parent
and the planner generates no parent column for it.  Conflicts are
surfaced, not resolved.

The resolver is a pure function returning an immutable result, so it can
be called freely from the planner, the data access layer and tests.

>>> from mms.core.structure import Rule, Structure
>>> s = Structure(rules=(Rule("a", "c"), Rule("b", "c")))
>>> resolve_relationships(s).ambiguous
frozenset({'c'})
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from mms.core.structure import ROOT_TYPE, Structure


@dataclass(frozen=True, slots=True)
class Relationships:
    """Resolved relationship facts for one structure.

    Attributes:
        child_parent: First-seen parent for every child type.  Ambiguous
            children stay in the map (their first parent) but must be
            checked with :meth:`parent_of`.
        ambiguous: Child types seen with more than one distinct parent.
        used_types: Type keys instantiated anywhere in the tree, in order
            of first appearance.
        top_level_types: Type keys instantiated directly under ``root``.
    """

    child_parent: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    ambiguous: frozenset[str] = frozenset()
    used_types: tuple[str, ...] = ()
    top_level_types: frozenset[str] = frozenset()

    def parent_of(self, type_key: str) -> str | None:
        """Single resolved parent, or ``None`` when absent or ambiguous."""
        if type_key in self.ambiguous:
            return None
        return self.child_parent.get(type_key)

    def is_used(self, type_key: str) -> bool:
        return type_key in self.used_types

    def parent_required(self, type_key: str) -> bool:
        """A parent id is mandatory unless the type also lives at top level."""
        return self.parent_of(type_key) is not None and type_key not in self.top_level_types


def tree_edges(structure: Structure) -> list[tuple[str, str]]:
    """Parent-type → child-type edges of the tree, in pre-order."""
    edges: list[tuple[str, str]] = []
    for parent, node in structure.tree.walk():
        if parent is None or parent.type == ROOT_TYPE:
            continue
        if parent.type == node.type:
            continue
        edges.append((parent.type, node.type))
    return edges


def _merge(
    edges: Iterable[tuple[str, str]],
    child_parent: dict[str, str],
    ambiguous: set[str],
) -> None:
    for parent, child in edges:
        current = child_parent.get(child)
        if current is None:
            child_parent[child] = parent
        elif current != parent:
            ambiguous.add(child)


def resolve_relationships(structure: Structure) -> Relationships:
    """Derive the child → parent map, ambiguity set and usage facts."""
    child_parent: dict[str, str] = {}
    ambiguous: set[str] = set()

    _merge(((r.parent, r.child) for r in structure.rules), child_parent, ambiguous)
    _merge(tree_edges(structure), child_parent, ambiguous)

    used: list[str] = []
    for _parent, node in structure.tree.walk():
        if node.type != ROOT_TYPE and node.type not in used:
            used.append(node.type)

    top_level = frozenset(
        child.type for child in structure.tree.children if child.type != ROOT_TYPE
    )

    return Relationships(
        child_parent=MappingProxyType(child_parent),
        ambiguous=frozenset(ambiguous),
        used_types=tuple(used),
        top_level_types=top_level,
    )


__all__ = ["Relationships", "resolve_relationships", "tree_edges"]
