"""
In-memory player stats table with additive counters, a monotonic max level
and ranked leaderboard queries. The SQLite file is only touched by ``load``
and ``flush``.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict, dataclass, replace
from enum import Enum
from threading import Lock
from typing import Any, Iterable, Mapping

from log_parser import DungeonLogRecord, PlayerLevelEvent
from stats_db import StatsDatabase

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    pass


class Metric(str, Enum):
    KILLS = "kills"
    PLAYTIME = "playtime"
    MAX_LEVEL = "maxlevel"

    @classmethod
    def parse(cls, value: object) -> "Metric | None":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class PlayerStats:
    player_name: str
    kills: int = 0
    playtime_seconds: int = 0
    max_level: int = 0

    def value(self, metric: Metric) -> int:
        if metric is Metric.KILLS:
            return self.kills
        if metric is Metric.PLAYTIME:
            return self.playtime_seconds
        return self.max_level

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def _stats_from_row(row: Mapping[str, Any]) -> PlayerStats:
    return PlayerStats(
        player_name=row["player_name"],
        kills=int(row["kills"]),
        playtime_seconds=int(row["playtime_seconds"]),
        max_level=int(row["max_level"]),
    )


def _storable_text(text: str) -> str:
    # SQLite text must be valid UTF-8; lone surrogates become "?".
    return text.encode("utf-8", "replace").decode("utf-8")


class StatsStore:
    """Authoritative stats table.

    One lock serializes every read-modify-write, and records are immutable
    values swapped in whole, so concurrent increments are never lost and a
    reader never sees a partially updated player.
    """

    def __init__(self, database: StatsDatabase | None = None) -> None:
        self._database = database
        self._players: dict[str, PlayerStats] = {}
        self._record_ids: set[str] = set()
        self._pending_records: list[DungeonLogRecord] = []
        self._dirty = False
        self._lock = Lock()

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "StatsStore":
        """Detached store over already-fetched rows, for read-only reporting."""
        store = cls()
        store._players = {row["player_name"]: _stats_from_row(row) for row in rows}
        return store

    # ---------- Write API ----------

    def _update(self, player_name: str, **deltas: int) -> None:
        with self._lock:
            current = self._players.get(player_name) or PlayerStats(player_name)
            self._players[player_name] = replace(
                current, **{name: getattr(current, name) + delta for name, delta in deltas.items()}
            )
            self._dirty = True

    def increment_play_time(self, player_name: str, delta_seconds: int) -> None:
        if delta_seconds < 0:
            return
        self._update(player_name, playtime_seconds=int(delta_seconds))

    def record_kill(self, player_name: str, n: int = 1) -> None:
        if n < 0:
            return
        self._update(player_name, kills=int(n))

    def update_player_max_level(self, player_name: str, level: int) -> None:
        level = int(level)
        if level < 0:
            return
        with self._lock:
            current = self._players.get(player_name)
            if current is None:
                self._players[player_name] = PlayerStats(player_name, max_level=level)
            elif level > current.max_level:
                self._players[player_name] = replace(current, max_level=level)
            else:
                return
            self._dirty = True

    def apply_level_events(self, events: Iterable[PlayerLevelEvent]) -> None:
        for event in events:
            self.update_player_max_level(event.player_name, event.level)

    def save_dungeon_log(self, record: DungeonLogRecord) -> bool:
        """Keep ``record`` unless its id was already saved. Returns True if new."""
        with self._lock:
            if record.record_id in self._record_ids:
                return False
            self._record_ids.add(record.record_id)
            self._pending_records.append(record)
            self._dirty = True
        return True

    # ---------- Read API ----------

    def has_record(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._record_ids

    def get_player_stats(self, player_name: str) -> PlayerStats | None:
        with self._lock:
            return self._players.get(player_name)

    def snapshot(self) -> dict[str, PlayerStats]:
        with self._lock:
            return dict(self._players)

    def all_players(self) -> list[PlayerStats]:
        return sorted(self.snapshot().values(), key=lambda stats: stats.player_name)

    def get_top_players(self, metric: Metric, limit: int) -> list[PlayerStats]:
        """
        Players ordered by ``metric`` descending, ties by ascending player name.
        ``limit <= 0`` gives an empty list.
        """
        if limit <= 0:
            return []
        rows = sorted(self.snapshot().values(), key=lambda stats: (-stats.value(metric), stats.player_name))
        return rows[:limit]

    # ---------- Persistence ----------

    def load(self) -> int:
        if self._database is None:
            return 0
        try:
            rows = self._database.load_players()
            record_ids = self._database.load_record_ids()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(f"Failed to load stats from {self._database.db_path}") from exc

        players = {row["player_name"]: _stats_from_row(row) for row in rows}
        with self._lock:
            self._players = players
            self._record_ids = record_ids
            self._pending_records = []
            self._dirty = False
        logger.info("Loaded %d players and %d dungeon log pages", len(players), len(record_ids))
        return len(players)

    def flush(self) -> bool:
        """Write the table to disk if anything changed. Returns True if written."""
        if self._database is None:
            return False
        with self._lock:
            if not self._dirty:
                return False
            players = [stats.to_dict() for stats in self._players.values()]
            records = list(self._pending_records)
            self._pending_records = []
            self._dirty = False

        try:
            self._database.save_all(
                players,
                [{"record_id": r.record_id, "raw_content": _storable_text(r.raw_content)} for r in records],
            )
        except Exception as exc:
            # Nothing was committed: keep the pending records for the next flush.
            with self._lock:
                self._pending_records[:0] = records
                self._dirty = True
            raise PersistenceError(f"Failed to save stats to {self._database.db_path}") from exc

        logger.info("Player data saved (%d players)", len(players))
        return True
