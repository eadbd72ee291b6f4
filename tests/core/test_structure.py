"""Tests for mms.core.structure: parsing, validation and defaults."""

from __future__ import annotations

import pytest

from mms.core.errors import ValidationError
from mms.core.structure import (
    DEFAULT_TYPE_KEYS,
    AttributeType,
    default_structure,
    parse_structure,
    value_matches,
)
from tests._support.structures import node, plant_structure


def _errors(doc) -> dict[str, str]:
    with pytest.raises(ValidationError) as exc_info:
        parse_structure(doc)
    return {e.field: e.message for e in exc_info.value.errors}


class TestParseStructure:
    def test_valid_document(self):
        s = parse_structure(plant_structure())
        assert [t.key for t in s.node_types] == ["line", "machine", "project"]
        assert s.rules[0].parent == "line"
        assert s.tree.children[0].children[0].attrs == {"name": "M1"}

    def test_wrapped_document(self):
        s = parse_structure({"structure": plant_structure()})
        assert s.get_type("machine") is not None

    def test_round_trip_is_stable(self):
        first = parse_structure(plant_structure()).to_dict()
        assert parse_structure(first).to_dict() == first

    def test_defaults_filled(self):
        s = parse_structure({"nodeTypes": [{"key": "unit", "attributes": [{"key": "name"}]}]})
        unit = s.get_type("unit")
        assert unit.label == "unit"
        assert unit.display_attr == "name"
        assert unit.attributes[0].type is AttributeType.STRING
        assert s.tree.is_root

    def test_not_an_object(self):
        assert "structure" in _errors(["nope"])


class TestValidationErrors:
    def test_missing_type_key(self):
        errs = _errors({"nodeTypes": [{"label": "x"}]})
        assert errs["nodeTypes[0].key"] == "nodeType.key is required"

    def test_duplicate_type_key(self):
        errs = _errors({"nodeTypes": [{"key": "a"}, {"key": "a"}]})
        assert "nodeTypes[1].key" in errs

    def test_duplicate_attribute_key(self):
        errs = _errors({"nodeTypes": [{"key": "a", "attributes": [{"key": "x"}, {"key": "x"}]}]})
        assert "nodeTypes[0].attributes[1].key" in errs

    def test_unknown_attribute_type(self):
        errs = _errors({"nodeTypes": [{"key": "a", "attributes": [{"key": "x", "type": "blob"}]}]})
        assert "nodeTypes[0].attributes[0].type" in errs

    def test_rule_must_reference_defined_types(self):
        errs = _errors({"nodeTypes": [{"key": "a"}], "rules": [{"parent": "a", "child": "zzz"}]})
        assert "rules[0].child" in errs

    def test_unknown_node_type_in_tree(self):
        doc = {"nodeTypes": [{"key": "a"}], "tree": node("root", "root", [node("x", "ghost")])}
        errs = _errors(doc)
        assert "root.children[0]" in errs

    def test_missing_required_attribute_in_tree(self):
        doc = plant_structure()
        doc["tree"]["children"][0]["attrs"] = {}
        errs = _errors(doc)
        assert errs["root.children[0].attrs.name"] == "Missing required attribute 'name'"

    def test_type_mismatch_in_tree(self):
        doc = plant_structure()
        doc["tree"]["children"][0]["children"][0]["attrs"]["power"] = "lots"
        errs = _errors(doc)
        assert errs["root.children[0].children[0].attrs.power"] == "Type mismatch: expected number"

    def test_collects_every_problem(self):
        doc = {
            "nodeTypes": [{"key": "a"}, {"label": "no key"}],
            "rules": [{"parent": "a", "child": "b"}],
            "tree": node("root", "root", [node("x", "ghost")]),
        }
        with pytest.raises(ValidationError) as exc_info:
            parse_structure(doc)
        assert len(exc_info.value.errors) == 3
        assert "3 problem" in exc_info.value.message


class TestValueMatches:
    @pytest.mark.parametrize(
        ("attr_type", "value", "ok"),
        [
            ("string", "x", True),
            ("string", 1, False),
            ("integer", 3, True),
            ("integer", True, False),
            ("number", 2.5, True),
            ("boolean", False, True),
            ("boolean", "true", False),
            ("date", "2024-05-01", True),
            ("date", "May 1", False),
            ("json", {"a": 1}, True),
            ("json", "{}", False),
        ],
    )
    def test_matches(self, attr_type, value, ok):
        s = parse_structure(
            {"nodeTypes": [{"key": "t", "attributes": [{"key": "v", "type": attr_type}]}]}
        )
        assert value_matches(s.get_type("t").attributes[0], value) is ok

    def test_enum_membership(self):
        s = parse_structure(
            {"nodeTypes": [{"key": "t", "attributes": [{"key": "v", "type": "enum", "values": ["a", "b"]}]}]}
        )
        attr = s.get_type("t").attributes[0]
        assert value_matches(attr, "a")
        assert not value_matches(attr, "c")


class TestDefaultStructure:
    def test_six_types_each_with_required_name(self):
        s = default_structure()
        assert tuple(t.key for t in s.node_types) == DEFAULT_TYPE_KEYS
        assert len(s.node_types) == 6
        for t in s.node_types:
            assert t.attribute("name").required is True
        assert s.rules == ()
        assert s.tree.children == ()
