from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

from placeholders import expand, render  # type: ignore  # noqa: E402
from stats_store import StatsStore  # type: ignore  # noqa: E402


@pytest.fixture()
def store() -> StatsStore:
    store = StatsStore()
    store.record_kill("Alice", 10)
    store.record_kill("Bob", 25)
    store.increment_play_time("Alice", 90)
    store.update_player_max_level("Alice", 7)
    return store


@pytest.mark.parametrize(
    ("params", "expected"),
    [("kills", "10"), ("playtime", "90"), ("maxlevel", "7"), ("MaxLevel", "7")],
)
def test_player_placeholders(store: StatsStore, params: str, expected: str) -> None:
    assert expand(store, "Alice", params) == expected


def test_unknown_player_reads_zero(store: StatsStore) -> None:
    assert expand(store, "Nobody", "kills") == "0"
    assert expand(store, None, "playtime") == "0"


@pytest.mark.parametrize(
    ("params", "expected"),
    [
        ("top_kills_1", "Bob"),
        ("top_kills_1_name", "Bob"),
        ("top_kills_2_value", "10"),
        ("top_maxlevel_1_value", "7"),
        ("top_kills_3", ""),
        ("top_kills_0", ""),
        ("top_kills_x", ""),
        ("top_deaths_1", ""),
    ],
)
def test_top_placeholders(store: StatsStore, params: str, expected: str) -> None:
    assert expand(store, None, params) == expected


def test_unknown_placeholder(store: StatsStore) -> None:
    assert expand(store, "Alice", "deaths") is None
    assert expand(store, "Alice", "top_kills") is None


def test_render_template(store: StatsStore) -> None:
    text = render(store, "Alice", "#1 %dungeonstats_top_kills_1% | you: %dungeonstats_kills% %dungeonstats_nope%")
    assert text == "#1 Bob | you: 10 %dungeonstats_nope%"
