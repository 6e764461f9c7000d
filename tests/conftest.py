import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from dungeon_designer import create_app, socketio  # noqa: E402
from dungeon_designer.routes.designer_api import clear_sessions  # noqa: E402
from dungeon_designer.settings import default_config  # noqa: E402


@pytest.fixture(scope="session")
def test_app():
    app = create_app()
    app.config.update({"TESTING": True})
    return app


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


@pytest.fixture()
def socket_client(test_app):
    # Flask-SocketIO provides a test client we can use against the global socketio instance
    test_client = socketio.test_client(test_app, flask_test_client=test_app.test_client())
    yield test_client
    test_client.disconnect()


@pytest.fixture()
def designer_config():
    """The designer preset (80x50)."""
    return default_config()


@pytest.fixture()
def small_config():
    """A 40x30 grid: still several rooms, but fast enough for per-step grid diffs."""
    return default_config().merged(
        {"width": 40, "height": 30, "minLeafSize": 8, "roomMinSize": 3, "roomCandidates": 20}
    )


# ---------------- Additional autouse cleanup ----------------
@pytest.fixture(autouse=True)
def _clear_designer_sessions():
    """Ensure designer sessions don't leak between tests."""
    clear_sessions()
    yield
    clear_sessions()
