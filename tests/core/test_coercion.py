"""Tests for mms.core.coercion: write-path coercion and read-path decoding."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from mms.core.coercion import coerce_value, decode_row
from mms.core.errors import ValidationError
from mms.core.structure import AttributeDefinition, AttributeType


def attr(kind: str, *, required: bool = False, values: tuple[str, ...] = ()) -> AttributeDefinition:
    return AttributeDefinition("v", type=AttributeType(kind), required=required, values=values)


class TestCoerceValue:
    @pytest.mark.parametrize(
        ("kind", "raw", "expected"),
        [
            ("string", 5, "5"),
            ("integer", "42", 42),
            ("integer", " 7 ", 7),
            ("integer", "3.0", 3),
            ("integer", 4.0, 4),
            ("number", "2.5", 2.5),
            ("number", 3, 3.0),
            ("boolean", "yes", True),
            ("boolean", "OFF", False),
            ("boolean", 1, True),
            ("date", "2024-05-01", "2024-05-01"),
            ("date", dt.date(2024, 5, 1), "2024-05-01"),
            ("date", dt.datetime(2024, 5, 1, 8, 30), "2024-05-01 08:30:00"),
            ("json", {"a": 1}, '{"a": 1}'),
            ("json", "[1]", "[1]"),
        ],
    )
    def test_accepts(self, kind, raw, expected):
        assert coerce_value(attr(kind), raw) == expected

    @pytest.mark.parametrize(
        ("kind", "raw"),
        [
            ("string", ["a"]),
            ("integer", True),
            ("integer", "3.5"),
            ("integer", "seven"),
            ("integer", 2.5),
            ("number", "abc"),
            ("number", False),
            ("boolean", "maybe"),
            ("boolean", 2),
            ("date", "01/05/2024"),
        ],
    )
    def test_rejects_ambiguous(self, kind, raw):
        with pytest.raises(ValidationError) as exc_info:
            coerce_value(attr(kind), raw)
        assert exc_info.value.fields == ["v"]

    @pytest.mark.parametrize(
        ("kind", "raw"),
        [
            ("integer", "Infinity"),
            ("integer", "-inf"),
            ("integer", "NaN"),
            ("integer", float("inf")),
            ("integer", 2**63),
            ("integer", str(-(2**63) - 1)),
            ("integer", "1e30"),
            ("integer", "1e999999999"),
            ("number", "NaN"),
            ("number", "Infinity"),
            ("number", "sNaN"),
            ("number", "1e999"),
            ("number", float("-inf")),
            ("number", 10**400),
        ],
    )
    def test_rejects_non_finite_and_out_of_range(self, kind, raw):
        with pytest.raises(ValidationError) as exc_info:
            coerce_value(attr(kind), raw)
        assert exc_info.value.fields == ["v"]

    def test_integer_range_edges(self):
        assert coerce_value(attr("integer"), str(2**63 - 1)) == 2**63 - 1
        assert coerce_value(attr("integer"), -(2**63)) == -(2**63)

    def test_enum(self):
        status = attr("enum", values=("running", "stopped"))
        assert coerce_value(status, "running") == "running"
        with pytest.raises(ValidationError, match="one of"):
            coerce_value(status, "exploded")

    def test_blank_means_null_for_scalars(self):
        assert coerce_value(attr("integer"), "") is None
        assert coerce_value(attr("date"), None) is None
        assert coerce_value(attr("string"), "") == ""

    def test_required_blank_rejected(self):
        with pytest.raises(ValidationError, match="required"):
            coerce_value(attr("string", required=True), "")
        with pytest.raises(ValidationError, match="required"):
            coerce_value(attr("number", required=True), None)


class TestDecodeRow:
    def test_decodes_typed_columns(self):
        attrs = (
            AttributeDefinition("active", type=AttributeType.BOOLEAN),
            AttributeDefinition("specs", type=AttributeType.JSON),
            AttributeDefinition("power", type=AttributeType.NUMBER),
        )
        row = {"id": 1, "active": 1, "specs": '{"rpm": 1200}', "power": Decimal("7.5")}
        out = decode_row(row, attrs)
        assert out == {"id": 1, "active": True, "specs": {"rpm": 1200}, "power": 7.5}
        assert row["active"] == 1

    def test_leaves_unparseable_json(self):
        attrs = (AttributeDefinition("specs", type=AttributeType.JSON),)
        assert decode_row({"specs": "not json"}, attrs) == {"specs": "not json"}
