"""
Process runtime: owns the store, the change detector and the periodic jobs
that feed them, and tears them down as a unit on stop or reload.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol

import log_parser
from change_detector import ChangeDetector
from periodic_tasks import Scheduler
from runtime_config import Settings, load_settings
from sources import ActivePlayersFile, FileLogSource
from stats_db import StatsDatabase
from stats_store import PersistenceError, StatsStore

logger = logging.getLogger(__name__)


class LogSource(Protocol):
    def fetch(self) -> str | None: ...


def check_log(source: LogSource, detector: ChangeDetector, store: StatsStore) -> str | None:
    """One log-check cycle. Returns the id of the record applied, if any."""
    try:
        current = source.fetch()
    except OSError as exc:
        logger.warning("Could not read dungeon log: %s", exc)
        return None

    changed = detector.observe(current)
    if changed is None:
        return None

    result = log_parser.parse(changed)
    if result.is_empty:
        logger.debug("Dungeon log changed but nothing recognizable was found")
        return None

    try:
        if store.save_dungeon_log(result.record):
            logger.info("Parsed dungeon log #%s", result.record.record_id)
        store.apply_level_events(result.level_events)
    except Exception:
        detector.forget(changed)
        raise
    return result.record.record_id


def accrue_play_time(active_players: Callable[[], Iterable[str]], store: StatsStore, tick_seconds: int) -> int:
    count = 0
    for name in active_players():
        store.increment_play_time(name, tick_seconds)
        count += 1
    return count


class DungeonRuntime:
    def __init__(
        self,
        settings: Settings | None = None,
        store: StatsStore | None = None,
        log_source: LogSource | None = None,
        active_players: Callable[[], Iterable[str]] | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.store = store or StatsStore(StatsDatabase(self.settings.db_path))
        self._custom_log_source = log_source
        self._custom_active_players = active_players
        self.detector = ChangeDetector()
        self.scheduler: Scheduler | None = None
        self._bind_sources()

    def _bind_sources(self) -> None:
        self.log_source = self._custom_log_source or FileLogSource(self.settings.log_file)
        self.active_players = self._custom_active_players or ActivePlayersFile(self.settings.active_players_file)

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def check_log(self) -> str | None:
        return check_log(self.log_source, self.detector, self.store)

    def accrue_play_time(self) -> int:
        return accrue_play_time(self.active_players, self.store, self.settings.playtime_interval)

    def flush(self) -> bool:
        try:
            return self.store.flush()
        except PersistenceError:
            logger.exception("Failed to save player data")
            return False

    def _build_scheduler(self) -> Scheduler:
        scheduler = Scheduler(max_workers=self.settings.worker_threads)
        if self.settings.log_checker_enabled:
            scheduler.add_job("log-checker", self.check_log, self.settings.log_check_interval)
        scheduler.add_job("playtime-tracker", self.accrue_play_time, self.settings.playtime_interval)
        scheduler.add_job("flush", self.flush, self.settings.flush_interval)
        return scheduler

    def start(self, load: bool = True) -> None:
        if self.running:
            return
        if load:
            try:
                self.store.load()
            except PersistenceError:
                logger.exception("Failed to load player data; starting with an empty table")
        self.scheduler = self._build_scheduler()
        self.scheduler.start()
        logger.info("Dungeon stats runtime started")

    def stop(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
        self.flush()
        logger.info("Dungeon stats runtime stopped")

    def reload(self) -> bool:
        """Stop every job, re-read settings and start fresh jobs. Returns success."""
        try:
            self.stop()
            self.settings = load_settings()
            self._bind_sources()
            # The table stays in memory; only the jobs and sources are rebuilt.
            self.start(load=False)
        except Exception:
            logger.exception("Dungeon stats reload failed")
            return False
        logger.info("Dungeon stats reloaded")
        return True
