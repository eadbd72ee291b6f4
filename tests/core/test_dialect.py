"""Tests for mms.core.dialect: DDL fragments per backend."""

from __future__ import annotations

import pytest

from mms.core.dialect import (
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    sql_literal,
)
from mms.core.structure import AttributeDefinition, AttributeType

NAME = AttributeDefinition("name", type=AttributeType.STRING, required=True)
STATUS = AttributeDefinition("status", type=AttributeType.ENUM, values=("running", "stopped"))
ACTIVE = AttributeDefinition("active", type=AttributeType.BOOLEAN, required=True)


class TestGetDialect:
    @pytest.mark.parametrize(
        ("name", "cls"),
        [
            ("sqlite", SQLiteDialect),
            ("SQLite", SQLiteDialect),
            ("postgresql", PostgreSQLDialect),
            ("postgres", PostgreSQLDialect),
            ("mysql", MySQLDialect),
            ("mariadb", MySQLDialect),
        ],
    )
    def test_lookup(self, name, cls):
        assert isinstance(get_dialect(name), cls)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("oracle")


class TestSQLite:
    d = SQLiteDialect()

    def test_quote_escapes(self):
        assert self.d.quote('we"ird') == '"we""ird"'
        assert sql_literal("it's") == "'it''s'"

    def test_create_table_has_audit_columns(self):
        sql = self.d.create_table("t1_line")
        assert sql.startswith('CREATE TABLE IF NOT EXISTS "t1_line"')
        for col in ("id", "created_by", "updated_by", "created_at", "updated_at"):
            assert f'"{col}"' in sql
        assert "AUTOINCREMENT" in sql

    def test_required_column_gets_default(self):
        assert self.d.add_column("t1_line", NAME) == (
            'ALTER TABLE "t1_line" ADD COLUMN "name" VARCHAR(255) NOT NULL DEFAULT \'\''
        )
        assert "NOT NULL DEFAULT 0" in self.d.column_definition(ACTIVE)

    def test_enum_becomes_check(self):
        assert self.d.column_definition(STATUS) == (
            '"status" VARCHAR(255) CHECK ("status" IN (\'running\', \'stopped\'))'
        )

    def test_parent_column_inline_reference(self):
        sql = self.d.add_parent_column("t1_machine", "line_id", "t1_line")
        assert 'REFERENCES "t1_line" ("id") ON DELETE RESTRICT ON UPDATE CASCADE' in sql
        assert self.d.add_foreign_key("t1_machine", "fk", "line_id", "t1_line") is None
        assert self.d.inline_foreign_keys is True

    def test_unique_is_index(self):
        sql = self.d.add_unique("t1_line", "uq_t1_line_name", ["name"])
        assert sql == 'CREATE UNIQUE INDEX IF NOT EXISTS "uq_t1_line_name" ON "t1_line" ("name")'

    def test_relax_nullable_unsupported(self):
        assert self.d.relax_nullable("t1_machine", "line_id") is None

    def test_dml_helpers(self):
        assert self.d.insert_or_ignore("locks", ["a", "b"]) == (
            "INSERT OR IGNORE INTO locks (a, b) VALUES (:a, :b)"
        )
        sql = self.d.upsert("reg", ["tenant_id", "type_key", "table_name"], ["tenant_id", "type_key"])
        assert "ON CONFLICT (tenant_id, type_key) DO UPDATE SET table_name = excluded.table_name" in sql


class TestPostgreSQL:
    d = PostgreSQLDialect()

    def test_types(self):
        assert self.d.returning_id is True
        assert "SERIAL PRIMARY KEY" in self.d.create_table("t1_line")
        assert self.d.column_definition(AttributeDefinition("specs", type=AttributeType.JSON)) == '"specs" JSONB'
        assert "NOT NULL DEFAULT FALSE" in self.d.column_definition(ACTIVE)

    def test_constraints_are_separate(self):
        assert self.d.add_parent_column("t1_machine", "line_id", "t1_line").endswith("INTEGER NULL")
        fk = self.d.add_foreign_key("t1_machine", "fk_t1_machine_line_id", "line_id", "t1_line")
        assert fk.startswith('ALTER TABLE "t1_machine" ADD CONSTRAINT "fk_t1_machine_line_id"')
        assert self.d.add_unique("t1_line", "uq", ["name"]).endswith('UNIQUE ("name")')
        assert self.d.relax_nullable("t1_machine", "line_id").endswith("DROP NOT NULL")


class TestMySQL:
    d = MySQLDialect()

    def test_backticks_and_native_enum(self):
        assert self.d.quote("name") == "`name`"
        assert self.d.column_definition(STATUS) == "`status` ENUM('running', 'stopped') NULL"
        assert self.d.column_definition(ACTIVE) == "`active` TINYINT(1) NOT NULL"

    def test_engine_and_relax(self):
        assert self.d.create_table("t1_line").endswith("ENGINE=InnoDB")
        assert "MODIFY `line_id` INT NULL" in self.d.relax_nullable("t1_machine", "line_id")
        assert self.d.insert_or_ignore("x", ["a"]).startswith("INSERT IGNORE INTO x")


class TestUpsertTouch:
    @pytest.mark.parametrize(
        ("dialect", "tail"),
        [
            (SQLiteDialect(), "table_name = excluded.table_name, updated_at = datetime('now')"),
            (PostgreSQLDialect(), "table_name = EXCLUDED.table_name, updated_at = NOW()"),
            (MySQLDialect(), "table_name = VALUES(table_name), updated_at = NOW()"),
        ],
    )
    def test_touch_column_stamped_on_update(self, dialect, tail):
        sql = dialect.upsert(
            "reg", ["tenant_id", "type_key", "table_name"], ["tenant_id", "type_key"], touch="updated_at"
        )
        assert sql.endswith(tail)
        assert "updated_at" not in sql.split("VALUES", 1)[0]
