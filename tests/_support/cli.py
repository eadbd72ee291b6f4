"""Helpers for reading CLI results."""

from __future__ import annotations

import json
from typing import Any


def as_json(result: Any) -> Any:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)
