"""
Fixed-interval jobs on a shared worker pool.

One timing thread decides what is due and hands it to a thread pool. A job
never runs concurrently with itself, and an exception in one job is logged
and does not affect the others.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from threading import Event, Lock, Thread
from typing import Callable

logger = logging.getLogger(__name__)

MAX_IDLE_SECONDS = 0.5


@dataclass
class Job:
    name: str
    func: Callable[[], object]
    interval: float
    next_run: float
    runs: int = 0
    failures: int = 0
    lock: Lock = field(default_factory=Lock, repr=False)


class Scheduler:
    def __init__(self, max_workers: int = 4) -> None:
        self.max_workers = max_workers
        self._jobs: list[Job] = []
        self._stop = Event()
        self._thread: Thread | None = None
        self._executor: ThreadPoolExecutor | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    def add_job(self, name: str, func: Callable[[], object], interval: float, initial_delay: float | None = None) -> Job:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        if self._thread is not None:
            raise RuntimeError("cannot add jobs to a started scheduler")
        delay = interval if initial_delay is None else max(0.0, initial_delay)
        job = Job(name=name, func=func, interval=interval, next_run=time.monotonic() + delay)
        self._jobs.append(job)
        return job

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("scheduler already started")
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="dungeon-task")
        self._thread = Thread(target=self._loop, name="dungeon-scheduler", daemon=True)
        self._thread.start()
        logger.debug("Scheduler started with %d jobs", len(self._jobs))

    def shutdown(self, wait: bool = True) -> None:
        """Stop starting new cycles; in-flight runs are allowed to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.debug("Scheduler stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            now = time.monotonic()
            for job in self._jobs:
                if job.next_run > now:
                    continue
                # Still running from the previous cycle: skip this one.
                if job.lock.acquire(blocking=False):
                    self._executor.submit(self._run, job)
                job.next_run += job.interval
                if job.next_run <= now:
                    job.next_run = now + job.interval
            if self._jobs:
                idle = min(job.next_run for job in self._jobs) - time.monotonic()
            else:
                idle = MAX_IDLE_SECONDS
            self._stop.wait(min(max(idle, 0.0), MAX_IDLE_SECONDS))

    def _run(self, job: Job) -> None:
        try:
            job.func()
            job.runs += 1
        except Exception:
            job.failures += 1
            logger.exception("Periodic task %s failed", job.name)
        finally:
            job.lock.release()
