#!/usr/bin/env python3
"""
Parse a dungeon log page into a record plus the player level-ups it mentions.

Usage:
    python scripts/log_parser.py dun_log.txt
The page is operator-authored text such as ``Page12: Alice reached level 5``;
only the page marker and level-up lines are recognized, everything else is ignored.
"""
from __future__ import annotations

import argparse
import hashlib
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

RECORD_ID_RE = re.compile(r"\b(?:Page|Run)\s*#?\s*(?P<record_id>\d{1,18})(?!\d)", re.IGNORECASE)
LEVEL_RE = re.compile(
    r"(?<![A-Za-z0-9_])(?!has )(?P<player>[A-Za-z0-9_]{1,16}) (?:has )?reached (?:level|lvl\.?|lv\.?) ?(?P<level>\d+)\b",
    re.IGNORECASE,
)
FORMATTING_CODE_RE = re.compile(r"§[0-9a-fk-orx]", re.IGNORECASE)

MAX_LEVEL_DIGITS = 9


@dataclass(frozen=True)
class DungeonLogRecord:
    record_id: str
    raw_content: str = field(repr=False)


@dataclass(frozen=True)
class PlayerLevelEvent:
    player_name: str
    level: int


@dataclass(frozen=True)
class ParsedResult:
    record: DungeonLogRecord | None = None
    level_events: tuple[PlayerLevelEvent, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.record is None and not self.level_events


EMPTY_RESULT = ParsedResult()


def _flatten_component(node: Any) -> Iterator[str]:
    if isinstance(node, str):
        yield node
    elif isinstance(node, list):
        for child in node:
            yield from _flatten_component(child)
    elif isinstance(node, dict):
        text = node.get("text")
        if isinstance(text, str):
            yield text
        yield from _flatten_component(node.get("extra", []))


def _plain_text(text: str) -> str:
    """Flatten JSON text components (as the game stores them) to plain text."""
    stripped = text.lstrip()
    if stripped[:1] in {"{", "["}:
        try:
            component = json.loads(stripped)
            if isinstance(component, (dict, list)):
                text = "".join(_flatten_component(component))
        except (ValueError, RecursionError):
            # Not a text component (or nested too deep to walk): match the raw text.
            pass
    return FORMATTING_CODE_RE.sub("", text)


def _iter_level_events(text: str) -> Iterator[PlayerLevelEvent]:
    for line in text.splitlines():
        for match in LEVEL_RE.finditer(line):
            digits = match.group("level")
            if len(digits) > MAX_LEVEL_DIGITS:
                continue
            yield PlayerLevelEvent(player_name=match.group("player"), level=int(digits))


def _record_id(text: str) -> str | None:
    match = RECORD_ID_RE.search(text)
    if match:
        return str(int(match.group("record_id")))
    return None


def parse(text: str | None) -> ParsedResult:
    if not text:
        return EMPTY_RESULT

    plain = _plain_text(text)
    events = tuple(_iter_level_events(plain))
    record_id = _record_id(plain)
    if record_id is None:
        if not events:
            return EMPTY_RESULT
        # Unmarked pages still need a stable id for the already-processed check.
        record_id = "sha1:" + hashlib.sha1(text.encode("utf-8", "surrogatepass")).hexdigest()[:12]

    return ParsedResult(
        record=DungeonLogRecord(record_id=record_id, raw_content=text),
        level_events=events,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse a dungeon log page and print what was recognized.")
    parser.add_argument("path", type=Path, help="Text file holding the current log page.")
    args = parser.parse_args()

    if not args.path.exists():
        raise SystemExit(f"Log file not found: {args.path}")

    result = parse(args.path.read_text(encoding="utf-8", errors="ignore"))
    print(
        json.dumps(
            {
                "record_id": result.record.record_id if result.record else None,
                "levels": [{"player": e.player_name, "level": e.level} for e in result.level_events],
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
