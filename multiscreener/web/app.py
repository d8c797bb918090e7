"""
Flask dashboard serving screener snapshots and on-demand runs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from flask import Flask, abort, jsonify

from ..data.client import FMPClient
from ..data.store import ResultStore
from ..exceptions import UniverseUnavailableError
from ..screener.batch import BatchOrchestrator, fetch_live_quotes
from ..screener.export import NO_RESULTS_MESSAGE, render_table, sanitize_records, to_frame, to_records
from ..utils.config import SCREENER_IDS, load_settings

logger = logging.getLogger(__name__)

SCREENER_TITLES = {
    'magic_formula': 'Magic Formula',
    'piotroski': 'Piotroski F-Score',
    'value_scan': 'Value Scan',
    'canslim': 'CANSLIM',
}

app = Flask(__name__)


@app.after_request
def _disable_cache(response):
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    return response


def _settings() -> Dict[str, Any]:
    if "SCREENER_SETTINGS" not in app.config:
        app.config["SCREENER_SETTINGS"] = load_settings(app.config.get("SCREENER_CONFIG_PATH"))
    return app.config["SCREENER_SETTINGS"]


def _client() -> FMPClient:
    return FMPClient.from_config(_settings()["api"])


def _store() -> ResultStore:
    cache = _settings()["cache"]
    return ResultStore(Path(cache["dir"]), top_n=int(cache["top_n"]))


def _require_screener(screener_id: str) -> None:
    if screener_id not in SCREENER_IDS:
        abort(404)


@app.errorhandler(404)
def _not_found(error):
    return jsonify({"error": "not_found"}), 404


@app.route("/")
def index():
    links = "".join(
        f'<li><a href="/screeners/{screener_id}">{title}</a></li>'
        for screener_id, title in SCREENER_TITLES.items()
    )
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Multi-Screener Dashboard</title>
  <style>
    body {{ font-family: "IBM Plex Sans", "Segoe UI", sans-serif; margin: 32px; color: #111; }}
    table {{ width: 100%; border-collapse: collapse; }}
    th, td {{ padding: 8px 10px; border-bottom: 1px solid #eee; text-align: left; font-size: 14px; }}
    th {{ background: #111; color: #fff; }}
  </style>
</head>
<body>
  <h1>Multi-Screener Dashboard</h1>
  <ul>{links}</ul>
</body>
</html>"""


@app.route("/api/screeners", methods=["GET"])
def list_screeners():
    screeners = _settings()["screeners"]
    return jsonify([
        {
            "id": screener_id,
            "title": SCREENER_TITLES[screener_id],
            "batch_size": screeners.get(screener_id, {}).get("batch_size"),
        }
        for screener_id in SCREENER_IDS
    ])


@app.route("/api/screeners/<screener_id>", methods=["GET"])
def get_snapshot(screener_id: str):
    _require_screener(screener_id)
    snapshot = _store().load(screener_id)
    if snapshot is None:
        return jsonify({"error": "no_snapshot"}), 404
    return jsonify(snapshot)


@app.route("/api/screeners/<screener_id>/run", methods=["POST"])
def run_screener(screener_id: str):
    _require_screener(screener_id)
    settings = _settings()
    client = _client()
    orchestrator = BatchOrchestrator(client, settings)

    try:
        outcome = orchestrator.run(screener_id)
    except UniverseUnavailableError as e:
        logger.error(f"{screener_id} run failed: {str(e)}")
        return jsonify({"error": "universe_unavailable", "message": str(e)}), 502

    records = to_records(outcome.results)
    store = _store()
    store.save(screener_id, records)

    quotes: Dict[str, Dict[str, Any]] = {}
    if not outcome.is_empty:
        quotes = fetch_live_quotes(client, [r["symbol"] for r in records])
        if quotes:
            store.save_quotes({**store.load_quotes(), **quotes})

    return jsonify({
        "screener": screener_id,
        "summary": {
            "processed": outcome.processed,
            "pooled": outcome.pooled,
            "total": len(records),
            "truncated": outcome.truncated,
            "message": NO_RESULTS_MESSAGE if outcome.is_empty else "",
        },
        "results": sanitize_records(records),
        "quotes": quotes,
    })


@app.route("/screeners/<screener_id>", methods=["GET"])
def screener_table(screener_id: str):
    _require_screener(screener_id)
    store = _store()
    snapshot = store.load(screener_id) or {}
    df = to_frame(screener_id, snapshot.get("results", []), store.load_quotes())
    heading = f"<h2>{SCREENER_TITLES[screener_id]}</h2>"
    generated = snapshot.get("generated_at")
    meta = f'<div class="meta">Generated {generated}</div>' if generated else ""
    return heading + meta + render_table(df)


def run(host: str = "127.0.0.1", port: int = 5000, debug: bool = False) -> None:
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run()
