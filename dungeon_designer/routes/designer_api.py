"""
project: Dungeon Designer
module: designer_api.py
License: MIT

Designer session API.

A session wraps one stepwise generator. Clients create a session, advance it
a few steps at a time (or all at once), and read back state, overlay and
exports between steps. Sessions live in a small in-process cache; the oldest
is evicted once the cap is reached.
"""

import threading
import time
import uuid

from flask import Blueprint, Response, jsonify, request

from dungeon_designer import settings
from dungeon_designer.dungeon import ConfigError, DungeonGenerator, run_to_completion
from dungeon_designer.export import csv_filename, export_csv, export_json, json_filename
from dungeon_designer.logging_utils import get_logger
from dungeon_designer.utils.tile_compress import encode_tiles_rle
from dungeon_designer.websockets.validation import CREATE_SESSION, STEP_SESSION, validate

log = get_logger("dungeon_designer.api")


class DesignerSession:
    """One generator plus the lock serializing access to it."""

    def __init__(self, session_id, seed, config):
        self.id = session_id
        self.seed = seed
        self.config = config
        self.generator = DungeonGenerator(seed, config)
        self.lock = threading.Lock()
        self.created = int(time.time())
        self.steps = 0

    def step(self, count):
        """Advance up to ``count`` steps; stops after the first ``done`` event."""
        events = []
        for _ in range(count):
            ev = self.generator.next_step()
            self.steps += 1
            events.append(ev)
            if self.generator.is_done():
                break
        return events

    def summary(self):
        return {
            "id": self.id,
            "seed": self.seed,
            "config": self.config.to_dict(),
            "stage": self.generator.stage.value,
            "steps": self.steps,
            "done": self.generator.is_done(),
            "created": self.created,
        }


# Session cache keyed by id. Thread-safe with a lock because Flask-SocketIO may interleave handlers.
_sessions = {}
_sessions_lock = threading.Lock()


def create_session(seed, config):
    session_id = uuid.uuid4().hex[:12]
    designer = DesignerSession(session_id, seed, config)
    evicted = []
    cap = settings.max_sessions()
    with _sessions_lock:
        _sessions[session_id] = designer
        while len(_sessions) > cap:
            oldest = next(iter(_sessions))
            _sessions.pop(oldest)
            evicted.append(oldest)
    log.info(event="session_created", session_id=session_id, seed=seed, width=config.width, height=config.height)
    for old in evicted:
        log.info(event="session_evicted", session_id=old, cap=cap)
    return designer


def get_session(session_id):
    with _sessions_lock:
        return _sessions.get(session_id)


def drop_session(session_id):
    with _sessions_lock:
        return _sessions.pop(session_id, None) is not None


def clear_sessions():
    with _sessions_lock:
        _sessions.clear()


def _bad_request(error, field=None):
    return jsonify({"error": error, "field": field}), 400


def _not_found(session_id):
    return jsonify({"error": f"unknown session {session_id}", "field": "session_id"}), 404


bp_designer = Blueprint("designer", __name__)


@bp_designer.route("/api/designer/defaults")
def designer_defaults():
    return jsonify(
        {
            "seed": settings.default_seed(),
            "config": dict(settings.DESIGNER_DEFAULTS),
            "maxStepsPerRequest": settings.max_steps_per_request(),
            "maxCells": settings.max_cells(),
        }
    )


@bp_designer.route("/api/designer/sessions", methods=["POST"])
def create_designer_session():
    """Create a stepping session.

    Body JSON (all optional):
      { "seed": <str>, "config": { <camelCase or snake_case overrides> } }
    Missing config keys fall back to the designer defaults.

    Response (201): session summary
    """
    data = request.get_json(silent=True) or {}
    ok, result = validate(data, CREATE_SESSION)
    if not ok:
        return _bad_request(result["error"], result["field"])
    seed = result.get("seed") or settings.default_seed()
    try:
        config = settings.check_grid_size(settings.default_config().merged(result.get("config") or {}))
    except ConfigError as exc:
        return _bad_request(exc.message, exc.field)
    designer = create_session(seed, config)
    return jsonify(designer.summary()), 201


@bp_designer.route("/api/designer/sessions/<session_id>")
def designer_session(session_id):
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    with designer.lock:
        return jsonify(designer.summary())


@bp_designer.route("/api/designer/sessions/<session_id>", methods=["DELETE"])
def delete_designer_session(session_id):
    if not drop_session(session_id):
        return _not_found(session_id)
    log.info(event="session_deleted", session_id=session_id)
    return jsonify({"deleted": session_id})


@bp_designer.route("/api/designer/sessions/<session_id>/step", methods=["POST"])
def step_designer_session(session_id):
    """Advance a session.

    Body JSON: { "count": <int >= 1, default 1> }
    Response: { "session": <summary>, "events": [<event>, ...] }
    """
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    data = request.get_json(silent=True) or {}
    ok, result = validate(data, STEP_SESSION)
    if not ok:
        return _bad_request(result["error"], result["field"])
    count = result.get("count", 1)
    limit = settings.max_steps_per_request()
    if count > limit:
        return _bad_request(f"must be <= {limit}", "count")
    with designer.lock:
        events = designer.step(count)
        return jsonify({"session": designer.summary(), "events": [ev.to_dict() for ev in events]})


@bp_designer.route("/api/designer/sessions/<session_id>/run", methods=["POST"])
def run_designer_session(session_id):
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    with designer.lock:
        report = run_to_completion(designer.generator)
        designer.steps += report.steps
        return jsonify({"session": designer.summary(), "report": report.to_dict()})


@bp_designer.route("/api/designer/sessions/<session_id>/state")
def designer_session_state(session_id):
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    with designer.lock:
        state = designer.generator.get_state()
        tiles = {"encoding": "rle", "data": encode_tiles_rle(state.tiles)}
        return jsonify(state.to_dict(tiles=tiles))


@bp_designer.route("/api/designer/sessions/<session_id>/overlay")
def designer_session_overlay(session_id):
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    with designer.lock:
        return jsonify(designer.generator.get_overlay().to_dict())


@bp_designer.route("/api/designer/sessions/<session_id>/export.json")
def export_designer_json(session_id):
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    with designer.lock:
        body = export_json(designer.generator)
    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={json_filename(designer.seed)}"},
    )


@bp_designer.route("/api/designer/sessions/<session_id>/export.csv")
def export_designer_csv(session_id):
    designer = get_session(session_id)
    if designer is None:
        return _not_found(session_id)
    with designer.lock:
        body = export_csv(designer.generator.get_state())
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={csv_filename(designer.seed)}"},
    )
