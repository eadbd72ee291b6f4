"""Fixtures for CLI tests."""

from __future__ import annotations

import json
from typing import Any

import pytest
from typer.testing import CliRunner

from mms.cli.app import app
from tests._support.cli import as_json
from tests._support.structures import plant_structure


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli(runner: CliRunner, db_url: str):
    """Invoke the CLI against the test database; ``-d`` is appended."""

    def invoke(*args: str, input: str | None = None) -> Any:
        return runner.invoke(app, [*args, "-d", db_url], input=input)

    assert invoke("db", "init").exit_code == 0
    return invoke


@pytest.fixture()
def structure_file(tmp_path) -> str:
    path = tmp_path / "structure.json"
    path.write_text(json.dumps(plant_structure()), encoding="utf-8")
    return str(path)


@pytest.fixture()
def tenant(cli) -> int:
    return as_json(cli("tenant", "add", "acme", "--json"))["id"]
