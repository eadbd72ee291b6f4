"""Tests for mms.core.data_access: CRUD over synthesized tables."""

from __future__ import annotations

import pytest

from mms.core.catalog import TableCatalog
from mms.core.data_access import DynamicDataAccess, normalize_payload, positive_int
from mms.core.errors import ConflictError, MaterializationError, NotFoundError, ValidationError
from mms.core.structure import parse_structure
from tests._support.structures import node, plant_structure, save, save_and_apply, with_attribute


@pytest.fixture()
def dao(conn) -> DynamicDataAccess:
    return DynamicDataAccess(conn, catalog=TableCatalog(ttl_seconds=0))


@pytest.fixture()
def applied(conn, tenant_id) -> int:
    save_and_apply(conn, tenant_id, plant_structure())
    return tenant_id


def make_line(dao, tenant_id, name="L1") -> int:
    return dao.create(tenant_id, "line", {"name": name})["id"]


class TestHelpers:
    def test_normalize_payload_prefers_direct_key(self):
        machine = parse_structure(plant_structure()).get_type("machine")
        values = normalize_payload(machine, {"name": "A", "attr_name": "B", "attr_serial": "S", "junk": 1})
        assert values == {"name": "A", "serial": "S"}

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (3, 3), ("12", 12), (0, None), (-1, None), ("x", None), (True, None), (None, None),
            (2**63 - 1, 2**63 - 1), (2**63, None), ("9" * 30, None), ("²", None),
        ],
    )
    def test_positive_int(self, raw, expected):
        assert positive_int(raw) == expected


class TestCreate:
    def test_round_trip_with_coercion(self, dao, applied):
        line_id = make_line(dao, applied)
        row = dao.create(
            applied,
            "machine",
            {
                "name": "Press",
                "line_id": str(line_id),
                "attr_serial": "SN-1",
                "power": "7.5",
                "active": "yes",
                "installed": "2024-05-01",
                "specs": {"rpm": 1200},
                "status": "running",
            },
            user_id=42,
        )
        assert row["line_id"] == line_id
        assert row["serial"] == "SN-1"
        assert row["power"] == 7.5
        assert row["active"] is True
        assert row["specs"] == {"rpm": 1200}
        assert row["created_by"] == 42
        assert row["updated_by"] == 42
        assert row["created_at"]

        assert dao.get(applied, "machine", row["id"]) == row

    def test_required_attribute_missing(self, dao, applied):
        with pytest.raises(ValidationError) as exc_info:
            dao.create(applied, "line", {})
        assert exc_info.value.fields == ["name"]

    def test_parent_required_for_nested_type(self, dao, applied):
        with pytest.raises(ValidationError, match="line_id"):
            dao.create(applied, "machine", {"name": "Orphan"})
        with pytest.raises(ValidationError, match="line_id"):
            dao.create(applied, "machine", {"name": "Orphan", "line_id": "abc"})

    def test_bad_value_rejected(self, dao, applied):
        line_id = make_line(dao, applied)
        with pytest.raises(ValidationError) as exc_info:
            dao.create(applied, "machine", {"name": "M", "line_id": line_id, "status": "exploded"})
        assert exc_info.value.fields == ["status"]

    def test_duplicate_name_is_conflict(self, dao, applied):
        make_line(dao, applied, "Same")
        with pytest.raises(ConflictError) as exc_info:
            make_line(dao, applied, "Same")
        assert "UNIQUE" in exc_info.value.detail
        assert make_line(dao, applied, "Other") > 0

    def test_unknown_parent_is_conflict(self, dao, applied):
        with pytest.raises(ConflictError):
            dao.create(applied, "machine", {"name": "M", "line_id": 999})

    def test_declared_but_not_applied(self, conn, dao, applied):
        save(conn, applied, with_attribute(plant_structure(), "line", {"key": "location"}))
        with pytest.raises(MaterializationError) as exc_info:
            dao.create(applied, "line", {"name": "L", "location": "Hall 3"})
        assert exc_info.value.missing == ["location"]
        assert exc_info.value.context.table == f"t{applied}_line"
        # Not supplied and not required: nothing to materialize.
        assert dao.create(applied, "line", {"name": "L"})["name"] == "L"

    def test_unknown_type(self, dao, applied):
        with pytest.raises(NotFoundError, match="Unknown type"):
            dao.create(applied, "robot", {"name": "R"})

    def test_no_structure(self, dao, tenant_id):
        with pytest.raises(NotFoundError, match="No structure"):
            dao.create(tenant_id, "line", {"name": "L"})

    def test_saved_but_never_applied(self, conn, dao, tenant_id):
        save(conn, tenant_id, plant_structure())
        with pytest.raises(NotFoundError, match="Table not found"):
            dao.create(tenant_id, "line", {"name": "L"})


class TestUpdate:
    def test_partial_update(self, dao, applied):
        line_id = make_line(dao, applied)
        m = dao.create(applied, "machine", {"name": "M", "line_id": line_id, "power": 1})
        updated = dao.update(applied, "machine", m["id"], {"power": "2.25", "active": False}, user_id=5)
        assert updated["power"] == 2.25
        assert updated["active"] is False
        assert updated["name"] == "M"
        assert updated["updated_by"] == 5

    def test_reparent(self, dao, applied):
        a, b = make_line(dao, applied, "A"), make_line(dao, applied, "B")
        m = dao.create(applied, "machine", {"name": "M", "line_id": a})
        assert dao.update(applied, "machine", m["id"], {"line_id": b})["line_id"] == b

    def test_required_parent_cannot_be_cleared(self, dao, applied):
        line_id = make_line(dao, applied)
        m = dao.create(applied, "machine", {"name": "M", "line_id": line_id})
        with pytest.raises(ValidationError):
            dao.update(applied, "machine", m["id"], {"line_id": None})

    def test_optional_parent_can_be_detached(self, conn, dao, tenant_id):
        doc = plant_structure()
        doc["tree"]["children"].append(node("n9", "machine", name="Loose"))
        save_and_apply(conn, tenant_id, doc)

        loose = dao.create(tenant_id, "machine", {"name": "Top"})
        assert loose["line_id"] is None
        line_id = make_line(dao, tenant_id)
        attached = dao.update(tenant_id, "machine", loose["id"], {"line_id": line_id})
        assert attached["line_id"] == line_id
        assert dao.update(tenant_id, "machine", loose["id"], {"line_id": None})["line_id"] is None

    def test_nothing_to_update(self, dao, applied):
        line_id = make_line(dao, applied)
        with pytest.raises(ValidationError, match="No updatable fields"):
            dao.update(applied, "line", line_id, {"unknown": 1})

    def test_missing_row(self, dao, applied):
        with pytest.raises(NotFoundError) as exc_info:
            dao.update(applied, "line", 404, {"name": "x"})
        assert exc_info.value.context.row_id == 404


class TestListAndDelete:
    def test_newest_first_with_paging(self, dao, applied):
        ids = [make_line(dao, applied, f"L{i}") for i in range(5)]
        rows, total = dao.list(applied, "line", limit=2, offset=1)
        assert total == 5
        assert [r["id"] for r in rows] == [ids[3], ids[2]]

    def test_filter_by_parent_and_id(self, dao, applied):
        a, b = make_line(dao, applied, "A"), make_line(dao, applied, "B")
        dao.create(applied, "machine", {"name": "M1", "line_id": a})
        dao.create(applied, "machine", {"name": "M2", "line_id": b})
        m3 = dao.create(applied, "machine", {"name": "M3", "line_id": b})

        rows, total = dao.list(applied, "machine", filters={"line_id": str(b)})
        assert total == 2
        assert {r["name"] for r in rows} == {"M2", "M3"}

        rows, _ = dao.list(applied, "machine", filters={"id": m3["id"], "serial": "ignored"})
        assert [r["name"] for r in rows] == ["M3"]

        with pytest.raises(ValidationError):
            dao.list(applied, "machine", filters={"line_id": "abc"})

    def test_limit_is_clamped(self, conn, applied):
        dao = DynamicDataAccess(conn, max_limit=2)
        for i in range(3):
            make_line(dao, applied, f"L{i}")
        rows, total = dao.list(applied, "line", limit=50)
        assert (len(rows), total) == (2, 3)
        rows, _ = dao.list(applied, "line", limit=0)
        assert len(rows) == 1

    def test_list_without_structure_is_empty(self, dao, tenant_id):
        assert dao.list(tenant_id, "line") == ([], 0)

    def test_delete(self, dao, applied):
        line_id = make_line(dao, applied)
        assert dao.delete(applied, "line", line_id) == {"deleted": True, "id": line_id}
        with pytest.raises(NotFoundError):
            dao.get(applied, "line", line_id)
        with pytest.raises(NotFoundError):
            dao.delete(applied, "line", line_id)

    def test_delete_referenced_parent_is_conflict(self, dao, applied):
        line_id = make_line(dao, applied)
        dao.create(applied, "machine", {"name": "M", "line_id": line_id})
        with pytest.raises(ConflictError):
            dao.delete(applied, "line", line_id)
        assert dao.get(applied, "line", line_id)["name"] == "L1"
