from __future__ import annotations

from typing import Any, Dict

import pytest

from songpanel.layout import Template, parse

SCENARIO_LINE = "┃ $time / $len ┃ SONG ┃ $a/$b ┃ FORMAT ┃ $fmt $> $count┃"


@pytest.fixture
def scenario_template() -> Template:
    """Single-line status template with one fill marker."""

    return parse(SCENARIO_LINE)


@pytest.fixture
def scenario_metadata() -> Dict[str, Any]:
    return {
        "time": "01:23",
        "len": "03:45",
        "a": 2,
        "b": 10,
        "fmt": "MOD",
        "count": "indexing...",
    }
