#!/usr/bin/env python3
"""
SQLite persistence for player stats and processed dungeon log pages.

Usage:
    python scripts/stats_db.py --db dungeonstats.sqlite --init
Tables:
    player_stats(player_name, kills, playtime_seconds, max_level)
    dungeon_logs(record_id, raw_content, saved_at)
"""
from __future__ import annotations

import argparse
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

SCHEMA = """
CREATE TABLE IF NOT EXISTS player_stats (
    player_name TEXT PRIMARY KEY,
    kills INTEGER NOT NULL DEFAULT 0,
    playtime_seconds INTEGER NOT NULL DEFAULT 0,
    max_level INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS dungeon_logs (
    record_id TEXT PRIMARY KEY,
    raw_content TEXT NOT NULL,
    saved_at TEXT NOT NULL
);
"""

UPSERT_PLAYER = """
INSERT INTO player_stats (player_name, kills, playtime_seconds, max_level)
VALUES (:player_name, :kills, :playtime_seconds, :max_level)
ON CONFLICT(player_name) DO UPDATE SET
    kills = excluded.kills,
    playtime_seconds = excluded.playtime_seconds,
    max_level = excluded.max_level
"""


PLAYER_COLUMNS = "player_name, kills, playtime_seconds, max_level"


def _fetch_dicts(conn: sqlite3.Connection, query: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
    return [dict(row) for row in conn.execute(query, params)]


def connect_readonly(db_path: Path) -> sqlite3.Connection:
    # Read-only URI so report tooling never contends with the flush writer.
    conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
    conn.row_factory = sqlite3.Row
    return conn


class StatsDatabase:
    """Row-level access to the stats file. Every call opens its own connection."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.executescript(SCHEMA)
        return conn

    def load_players(self) -> list[dict[str, Any]]:
        with closing(self._connect()) as conn:
            return _fetch_dicts(conn, f"SELECT {PLAYER_COLUMNS} FROM player_stats ORDER BY player_name")

    def load_record_ids(self) -> set[str]:
        with closing(self._connect()) as conn:
            return {row["record_id"] for row in _fetch_dicts(conn, "SELECT record_id FROM dungeon_logs")}

    def get_player(self, player_name: str) -> dict[str, Any] | None:
        with closing(self._connect()) as conn:
            rows = _fetch_dicts(conn, f"SELECT {PLAYER_COLUMNS} FROM player_stats WHERE player_name = ?", (player_name,))
        return rows[0] if rows else None

    def put_player(self, row: Mapping[str, Any]) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(UPSERT_PLAYER, dict(row))

    def save_all(self, players: Iterable[Mapping[str, Any]], records: Iterable[Mapping[str, Any]]) -> None:
        """Write the full player table and any new log records in one transaction."""
        saved_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with closing(self._connect()) as conn, conn:
            conn.executemany(UPSERT_PLAYER, [dict(row) for row in players])
            conn.executemany(
                "INSERT OR IGNORE INTO dungeon_logs (record_id, raw_content, saved_at) VALUES (?, ?, ?)",
                [(row["record_id"], row["raw_content"], saved_at) for row in records],
            )


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or inspect the dungeon stats database.")
    parser.add_argument("--db", default="dungeonstats.sqlite", type=Path, help="Path to stats SQLite file")
    parser.add_argument("--init", action="store_true", help="Create the tables if they are missing")
    args = parser.parse_args()

    if args.init:
        StatsDatabase(args.db).load_players()
        print(f"Initialized {args.db}")
        return

    if not args.db.exists():
        raise SystemExit(f"Database file not found: {args.db}")
    with closing(connect_readonly(args.db)) as conn:
        players = conn.execute("SELECT COUNT(*) FROM player_stats").fetchone()[0]
        pages = conn.execute("SELECT COUNT(*) FROM dungeon_logs").fetchone()[0]
    print(f"{players} players, {pages} dungeon log pages")


if __name__ == "__main__":
    main()
