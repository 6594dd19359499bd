#!/usr/bin/env python3
"""
Show dungeon stats and leaderboards from the stats SQLite file.

Usage:
    python scripts/dun_stats.py --db dungeonstats.sqlite stats Alice
    python scripts/dun_stats.py [--format markdown|json] killtop [--limit 10]
Subcommands: stats <player>, killtop, playtimetop, maxleveltop.
"""
from __future__ import annotations

import argparse
import json
import logging
from contextlib import closing
from pathlib import Path

from stats_db import PLAYER_COLUMNS, connect_readonly
from stats_store import Metric, PlayerStats, StatsStore

TOP_COMMANDS = {
    "killtop": Metric.KILLS,
    "playtimetop": Metric.PLAYTIME,
    "maxleveltop": Metric.MAX_LEVEL,
}

TITLES = {
    Metric.KILLS: "Kill Leaderboard",
    Metric.PLAYTIME: "Play Time Leaderboard",
    Metric.MAX_LEVEL: "Max Level Leaderboard",
}


def format_seconds(total_seconds: int) -> str:
    hours, rest = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def load_store(db_path: Path) -> StatsStore:
    with closing(connect_readonly(db_path)) as conn:
        rows = conn.execute(f"SELECT {PLAYER_COLUMNS} FROM player_stats").fetchall()
    return StatsStore.from_rows(rows)


def display_value(stats: PlayerStats, metric: Metric) -> str:
    if metric is Metric.PLAYTIME:
        return format_seconds(stats.playtime_seconds)
    return str(stats.value(metric))


def leaderboard_table(metric: Metric, top: list[PlayerStats]) -> str:
    """Markdown table with right-aligned rank and value columns."""
    lines = [f"| Rank | Player | {metric.value} |", "| ---: | --- | ---: |"]
    for rank, stats in enumerate(top, start=1):
        lines.append(f"| {rank} | {stats.player_name} | {display_value(stats, metric)} |")
    if not top:
        lines.append("| - | (no players yet) | - |")
    return "\n".join(lines)


def format_player(stats: PlayerStats) -> str:
    lines = [f"# {stats.player_name}", ""]
    lines.append(f"- Max level: **{stats.max_level}**")
    lines.append(f"- Kills: **{stats.kills}**")
    lines.append(f"- Play time: **{format_seconds(stats.playtime_seconds)}**")
    return "\n".join(lines)


def format_top(metric: Metric, top: list[PlayerStats]) -> str:
    return "\n".join([f"## {TITLES[metric]}", leaderboard_table(metric, top)])


def run(args: argparse.Namespace) -> str:
    if not args.db.exists():
        raise SystemExit(f"Database file not found: {args.db}")
    store = load_store(args.db)

    if args.command == "stats":
        stats = store.get_player_stats(args.player)
        if stats is None:
            raise SystemExit(f"Player not found: {args.player}")
        if args.format == "json":
            return json.dumps(stats.to_dict(), indent=2)
        return format_player(stats)

    metric = TOP_COMMANDS[args.command]
    top = store.get_top_players(metric, args.limit)
    if args.format == "json":
        return json.dumps([s.to_dict() for s in top], indent=2)
    return format_top(metric, top)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dungeon stats and leaderboards.")
    parser.add_argument("--db", default="dungeonstats.sqlite", type=Path, help="Path to stats SQLite file")
    parser.add_argument(
        "--format",
        choices=("markdown", "json"),
        default="markdown",
        help="Output format (markdown for human-readable, json for programmatic use)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    stats = sub.add_parser("stats", help="Show one player's stats")
    stats.add_argument("player")
    for name in TOP_COMMANDS:
        top = sub.add_parser(name, help=f"Show the {name} leaderboard")
        top.add_argument("--limit", default=10, type=int, help="Row limit for the leaderboard")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    args = build_parser().parse_args()
    print(run(args))


if __name__ == "__main__":
    main()
