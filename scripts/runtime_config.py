"""
Runtime settings read from environment variables.

Config:
    DUNGEON_DB: path to the stats SQLite file (default: dungeonstats.sqlite)
    DUNGEON_LOG_FILE: text file holding the current dungeon log page (default: dun_log.txt)
    ACTIVE_PLAYERS_FILE: names of players currently in a run, one per line (default: active_players.txt)
    LOG_CHECKER_ENABLED: poll the log page at all (default: true)
    LOG_CHECK_INTERVAL: seconds between log polls (default: 1.0)
    PLAYTIME_INTERVAL: seconds per play time tick (default: 1)
    FLUSH_INTERVAL: seconds between saves to disk (default: 300)
    STATS_LIMIT: rows for leaderboards (default: 10)
    WORKER_THREADS: size of the shared task pool (default: 4)
    ADMIN_TOKEN: token required by the reload endpoint; empty disables it
    LOG_LEVEL: logging level name (default: INFO)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    try:
        return max(minimum, int(os.getenv(name, str(default))))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        value = float(os.getenv(name, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_file: Path
    active_players_file: Path
    log_checker_enabled: bool
    log_check_interval: float
    playtime_interval: int
    flush_interval: float
    stats_limit: int
    worker_threads: int
    admin_token: str
    log_level: str


def load_settings() -> Settings:
    return Settings(
        db_path=Path(os.getenv("DUNGEON_DB", "dungeonstats.sqlite")),
        log_file=Path(os.getenv("DUNGEON_LOG_FILE", "dun_log.txt")),
        active_players_file=Path(os.getenv("ACTIVE_PLAYERS_FILE", "active_players.txt")),
        log_checker_enabled=_bool_env("LOG_CHECKER_ENABLED", True),
        log_check_interval=_float_env("LOG_CHECK_INTERVAL", 1.0),
        playtime_interval=_int_env("PLAYTIME_INTERVAL", 1),
        flush_interval=_float_env("FLUSH_INTERVAL", 300.0),
        stats_limit=_int_env("STATS_LIMIT", 10),
        worker_threads=_int_env("WORKER_THREADS", 4),
        admin_token=os.getenv("ADMIN_TOKEN", ""),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
