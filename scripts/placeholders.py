"""
Placeholder expansion for scoreboards and chat templates.

Supported (identifier ``dungeonstats``):
    kills, playtime, maxlevel            -> stats of the viewing player, "0" if unknown
    top_<metric>_<n>                     -> player name at rank n (1-based)
    top_<metric>_<n>_name                -> same as above
    top_<metric>_<n>_value               -> metric value at rank n
Rank out of range or an unknown metric expands to "".
"""
from __future__ import annotations

from stats_store import Metric, StatsStore

IDENTIFIER = "dungeonstats"


def expand(store: StatsStore, player_name: str | None, params: str) -> str | None:
    key = params.lower()

    metric = Metric.parse(key)
    if metric is not None:
        stats = store.get_player_stats(player_name) if player_name else None
        return "0" if stats is None else str(stats.value(metric))

    if key.startswith("top_"):
        parts = key.split("_")
        if len(parts) < 3:
            return None
        metric = Metric.parse(parts[1])
        if metric is None:
            return ""
        try:
            rank = int(parts[2])
        except ValueError:
            return ""
        field = parts[3] if len(parts) >= 4 else "name"

        top = store.get_top_players(metric, rank)
        if rank < 1 or rank > len(top):
            return ""
        stats = top[rank - 1]
        if field == "value":
            return str(stats.value(metric))
        return stats.player_name

    return None


def render(store: StatsStore, player_name: str | None, template: str) -> str:
    """Replace every ``%dungeonstats_<params>%`` in ``template``; unknown ones are left as-is."""
    prefix = f"%{IDENTIFIER}_"
    out: list[str] = []
    pos = 0
    while True:
        start = template.find(prefix, pos)
        if start < 0:
            break
        end = template.find("%", start + len(prefix))
        if end < 0:
            break
        value = expand(store, player_name, template[start + len(prefix):end])
        out.append(template[pos:start])
        out.append(template[start:end + 1] if value is None else value)
        pos = end + 1
    out.append(template[pos:])
    return "".join(out)
