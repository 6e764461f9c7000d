"""
project: Dungeon Designer
module: __init__.py
License: MIT

Flask application factory and core extensions setup.

This module wires together the Flask app and Flask-SocketIO and registers the
designer blueprint and Socket.IO handlers. Configuration is sourced from
environment variables with reasonable defaults for development. A local
`instance/` directory holds the rotating log file.
"""

import logging
import os
import uuid

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_socketio import SocketIO

# Load .env if present so `SECRET_KEY`, `DESIGNER_*`, etc. can be supplied
# without exporting shell variables during development.
load_dotenv()

app = Flask(__name__, instance_relative_config=True)

try:
    os.makedirs(app.instance_path, exist_ok=True)
except OSError:
    # read-only installs still serve requests; only the log file is lost
    pass

app.config.update(
    SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
)
app.json.sort_keys = False

# Let Flask-SocketIO select best async_mode based on installed deps (eventlet/gevent/threading)
socketio = SocketIO(
    app,
    async_mode=os.getenv("SOCKETIO_ASYNC_MODE") or None,
    cors_allowed_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*"),
    ping_interval=20,
    ping_timeout=10,
)

# Register HTTP blueprints
from dungeon_designer.routes.designer_api import bp_designer  # noqa: E402

app.register_blueprint(bp_designer)

# Import websocket handlers so their event decorators register with Socket.IO (side-effect)
from dungeon_designer.websockets import designer as _ws_designer  # noqa: F401,E402


def create_app():
    """Return the Flask app instance (module-level singleton)."""
    return app


# Error handling: log details under a short id the client can quote back
@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s)", error_id)
    return jsonify({"error": "internal server error", "error_id": error_id}), 500
