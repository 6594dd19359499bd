"""
File-backed adapters for the dungeon log page and the list of active players.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterator


def _iter_lines(path: Path) -> Iterator[str]:
    with path.open("r", encoding="utf-8", errors="ignore") as fh:
        yield from fh


class FileLogSource:
    """The whole current log page, re-read on every fetch."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8", errors="ignore")


class ActivePlayersFile:
    """One player name per line; blank lines and ``#`` comments are skipped."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __call__(self) -> list[str]:
        if not self.path.exists():
            return []
        names: list[str] = []
        for line in _iter_lines(self.path):
            name = line.strip()
            if name and not name.startswith("#") and name not in names:
                names.append(name)
        return names
