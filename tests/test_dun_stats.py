from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

from dun_stats import build_parser, format_seconds, run  # type: ignore  # noqa: E402
from stats_db import StatsDatabase  # type: ignore  # noqa: E402


def build_test_db(tmp_path: Path) -> Path:
    db_path = tmp_path / "stats.sqlite"
    StatsDatabase(db_path).save_all(
        [
            {"player_name": "Steve", "kills": 12, "playtime_seconds": 3725, "max_level": 4},
            {"player_name": "Alex", "kills": 30, "playtime_seconds": 60, "max_level": 9},
        ],
        [{"record_id": "1", "raw_content": "Page1: Alex reached level 9"}],
    )
    return db_path


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return build_test_db(tmp_path)


def cli(db_path: Path, *argv: str) -> str:
    return run(build_parser().parse_args(["--db", str(db_path), *argv]))


def test_format_seconds() -> None:
    assert format_seconds(0) == "00:00:00"
    assert format_seconds(3725) == "01:02:05"
    assert format_seconds(90061) == "25:01:01"


def test_player_stats(db_path: Path) -> None:
    out = cli(db_path, "stats", "Steve")
    assert "# Steve" in out
    assert "Kills: **12**" in out
    assert "Play time: **01:02:05**" in out


def test_player_stats_json(db_path: Path) -> None:
    data = json.loads(cli(db_path, "--format", "json", "stats", "Alex"))
    assert data == {"player_name": "Alex", "kills": 30, "playtime_seconds": 60, "max_level": 9}


def test_unknown_player(db_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli(db_path, "stats", "Herobrine")


def test_killtop(db_path: Path) -> None:
    out = cli(db_path, "killtop")
    assert "## Kill Leaderboard" in out
    assert out.index("Alex") < out.index("Steve")


def test_leaderboard_rows_are_ranked_and_aligned(db_path: Path) -> None:
    lines = cli(db_path, "playtimetop").splitlines()
    assert lines[1:] == [
        "| Rank | Player | playtime |",
        "| ---: | --- | ---: |",
        "| 1 | Steve | 01:02:05 |",
        "| 2 | Alex | 00:01:00 |",
    ]


def test_playtimetop_json(db_path: Path) -> None:
    data = json.loads(cli(db_path, "--format", "json", "playtimetop", "--limit", "1"))
    assert [row["player_name"] for row in data] == ["Steve"]


def test_empty_leaderboard(tmp_path: Path) -> None:
    db_path = tmp_path / "empty.sqlite"
    StatsDatabase(db_path).load_players()
    assert "| - | (no players yet) | - |" in cli(db_path, "maxleveltop")


def test_missing_database(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli(tmp_path / "missing.sqlite", "killtop")
