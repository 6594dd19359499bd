#!/usr/bin/env python3
"""
Flask app serving dungeon player stats and leaderboards as JSON.

Usage:
    python app.py
Starts the log checker, play time tracker and periodic save alongside the API.
Configuration is read from environment variables, see scripts/runtime_config.py.
"""
from __future__ import annotations

import atexit
import hmac
import logging
import os
import sys
from pathlib import Path
from threading import Lock

from flask import Flask, current_app, jsonify, request

ROOT = Path(__file__).resolve().parent
SCRIPTS = ROOT / "scripts"
if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

from dungeon_runtime import DungeonRuntime  # type: ignore  # noqa: E402
from stats_store import Metric, PersistenceError  # type: ignore  # noqa: E402

logger = logging.getLogger(__name__)

MAX_TOP_LIMIT = 100

app = Flask(__name__)
_RUNTIME_LOCK = Lock()


def get_runtime() -> DungeonRuntime:
    runtime = current_app.config.get("RUNTIME")
    if runtime is not None:
        return runtime
    with _RUNTIME_LOCK:
        runtime = current_app.config.get("RUNTIME")
        if runtime is None:
            runtime = DungeonRuntime()
            try:
                runtime.store.load()
            except PersistenceError:
                logger.exception("Failed to load player data")
            current_app.config["RUNTIME"] = runtime
    return runtime


def get_limit(default: int) -> int:
    try:
        limit = int(request.args.get("limit", default))
    except ValueError:
        return default
    return min(limit, MAX_TOP_LIMIT)


def top_response(metric_name: str):
    metric = Metric.parse(metric_name)
    if metric is None:
        return jsonify({"error": f"Unknown metric: {metric_name}"}), 400
    runtime = get_runtime()
    top = runtime.store.get_top_players(metric, get_limit(runtime.settings.stats_limit))
    return jsonify(
        {
            "metric": metric.value,
            "players": [
                {"rank": rank, **stats.to_dict()} for rank, stats in enumerate(top, start=1)
            ],
        }
    )


@app.route("/api/players")
def api_players():
    return jsonify([stats.to_dict() for stats in get_runtime().store.all_players()])


@app.route("/api/players/<player_name>")
def api_player(player_name: str):
    stats = get_runtime().store.get_player_stats(player_name)
    if stats is None:
        return jsonify({"error": f"Player not found: {player_name}"}), 404
    return jsonify(stats.to_dict())


@app.route("/api/top/<metric_name>")
def api_top(metric_name: str):
    return top_response(metric_name)


@app.route("/api/killtop")
def api_killtop():
    return top_response(Metric.KILLS.value)


@app.route("/api/playtimetop")
def api_playtimetop():
    return top_response(Metric.PLAYTIME.value)


@app.route("/api/maxleveltop")
def api_maxleveltop():
    return top_response(Metric.MAX_LEVEL.value)


@app.route("/api/reload", methods=["POST"])
def api_reload():
    runtime = get_runtime()
    token = runtime.settings.admin_token
    supplied = request.headers.get("X-Admin-Token", "")
    if not token or not hmac.compare_digest(token.encode("utf-8"), supplied.encode("utf-8")):
        return jsonify({"reloaded": False, "error": "You do not have permission to reload."}), 403
    if runtime.reload():
        return jsonify({"reloaded": True})
    return jsonify({"reloaded": False, "error": "Reload failed, see server log."}), 500


def main() -> None:
    runtime = DungeonRuntime()
    logging.basicConfig(
        level=runtime.settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.config["RUNTIME"] = runtime
    runtime.start()
    atexit.register(runtime.stop)
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")))


if __name__ == "__main__":
    main()
