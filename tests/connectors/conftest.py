"""Connector-specific pytest fixtures.

Loads sample PowerDay API responses from tests/fixtures/.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _load_json(filename: str) -> Any:
    """Load a JSON fixture file."""
    filepath = FIXTURES_DIR / filename
    with filepath.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def power_day_response() -> list[dict[str, Any]]:
    """Sample PowerDay API response: 3 trades for 2024-01-16."""
    return _load_json("power_day_trades_sample.json")
