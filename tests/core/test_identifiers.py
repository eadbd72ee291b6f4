"""Tests for mms.core.identifiers: physical naming rules."""

from __future__ import annotations

import pytest

from mms.core.identifiers import (
    foreign_key_name,
    index_name,
    parent_column,
    sanitize_ident,
    table_name,
    unique_name,
)


class TestSanitizeIdent:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("name", "name"),
            ("Serial No.", "serial_no"),
            ("Sub-Line", "sub_line"),
            ("__x__", "x"),
            ("3phase", "f_3phase"),
            ("", "f_"),
            ("!!!", "f_"),
            ("Größe", "gr__e"),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_ident(raw) == expected

    def test_idempotent(self):
        once = sanitize_ident("Motor Power (kW)")
        assert sanitize_ident(once) == once


class TestNames:
    def test_table_name(self):
        assert table_name(7, "Sub-Line") == "t7_sub_line"

    def test_parent_column(self):
        assert parent_column("line") == "line_id"

    def test_index_and_fk(self):
        assert index_name("t1_machine", "line_id") == "idx_t1_machine_line_id"
        assert foreign_key_name("t1_machine", "line_id") == "fk_t1_machine_line_id"

    def test_unique(self):
        assert unique_name("t1_machine", ["line_id", "name"]) == "uq_t1_machine_line_id_name"
        assert unique_name("t1_line", ["name"]) == "uq_t1_line_name"
