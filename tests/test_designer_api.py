import pytest

from dungeon_designer.settings import DESIGNER_DEFAULTS
from dungeon_designer.utils.tile_compress import decode_tiles_rle

SMALL = {"width": 40, "height": 30, "minLeafSize": 8, "roomMinSize": 3}


def _create(client, **body):
    resp = client.post("/api/designer/sessions", json=body)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def test_defaults(client, monkeypatch):
    monkeypatch.setenv("DESIGNER_MAX_STEPS_PER_REQUEST", "250")
    data = client.get("/api/designer/defaults").get_json()
    assert data["seed"] == "dungeon-001"
    assert data["config"] == DESIGNER_DEFAULTS
    assert data["maxStepsPerRequest"] == 250


def test_create_session_uses_defaults(client):
    summary = _create(client)
    assert summary["seed"] == "dungeon-001"
    assert summary["config"] == DESIGNER_DEFAULTS
    assert summary["stage"] == "init"
    assert summary["steps"] == 0
    assert summary["done"] is False


def test_create_session_with_overrides(client):
    summary = _create(client, seed="  crypt  ", config={"width": 40, "room_min_size": 4})
    assert summary["seed"] == "crypt"
    assert summary["config"]["width"] == 40
    assert summary["config"]["roomMinSize"] == 4
    assert client.get(f"/api/designer/sessions/{summary['id']}").get_json() == summary


@pytest.mark.parametrize(
    "body,field",
    [
        ({"seed": 5}, "seed"),
        ({"seed": "   "}, "seed"),
        ({"seed": "x" * 129}, "seed"),
        ({"config": []}, "config"),
        ({"config": {"width": 0}}, "width"),
        ({"config": {"extraLoopChance": 2}}, "extraLoopChance"),
        ({"config": {"bogus": 1}}, "bogus"),
    ],
)
def test_create_session_rejects_bad_input(client, body, field):
    resp = client.post("/api/designer/sessions", json=body)
    assert resp.status_code == 400
    assert resp.get_json()["field"] == field


def test_unknown_session_is_404(client):
    for path in ("", "/state", "/overlay", "/export.json", "/export.csv"):
        resp = client.get(f"/api/designer/sessions/nope{path}")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "unknown session nope", "field": "session_id"}
    assert client.post("/api/designer/sessions/nope/step", json={}).status_code == 404
    assert client.post("/api/designer/sessions/nope/run").status_code == 404
    assert client.delete("/api/designer/sessions/nope").status_code == 404


def test_step_advances(client):
    sid = _create(client, seed="steps", config=SMALL)["id"]
    data = client.post(f"/api/designer/sessions/{sid}/step", json={}).get_json()
    assert [e["type"] for e in data["events"]] == ["init"]
    assert data["session"]["stage"] == "bsp"
    data = client.post(f"/api/designer/sessions/{sid}/step", json={"count": 4}).get_json()
    assert len(data["events"]) == 4
    assert data["session"]["steps"] == 5


def test_step_stops_at_done(client):
    sid = _create(client, seed="finish", config=SMALL)["id"]
    data = client.post(f"/api/designer/sessions/{sid}/step", json={"count": 5000}).get_json()
    assert data["events"][-1]["type"] == "done"
    assert sum(1 for e in data["events"] if e["type"] == "done") == 1
    assert data["session"]["done"] is True
    again = client.post(f"/api/designer/sessions/{sid}/step", json={"count": 3}).get_json()
    assert [e["type"] for e in again["events"]] == ["done"]


@pytest.mark.parametrize("count", [0, -1, "3", True])
def test_step_rejects_bad_count(client, count):
    sid = _create(client)["id"]
    resp = client.post(f"/api/designer/sessions/{sid}/step", json={"count": count})
    assert resp.status_code == 400
    assert resp.get_json()["field"] == "count"


def test_step_limit(client, monkeypatch):
    monkeypatch.setenv("DESIGNER_MAX_STEPS_PER_REQUEST", "10")
    sid = _create(client)["id"]
    resp = client.post(f"/api/designer/sessions/{sid}/step", json={"count": 11})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "must be <= 10", "field": "count"}


def test_run_to_completion(client):
    sid = _create(client, seed="runner", config=SMALL)["id"]
    data = client.post(f"/api/designer/sessions/{sid}/run").get_json()
    report = data["report"]
    assert report["completed"] is True
    assert report["finalEvent"]["type"] == "done"
    assert data["session"]["done"] is True
    assert data["session"]["steps"] == report["steps"]
    assert report["metrics"]["rooms_placed"] == report["finalEvent"]["rooms"]


def test_state_uses_rle_tiles(client):
    sid = _create(client, seed="state", config=SMALL)["id"]
    client.post(f"/api/designer/sessions/{sid}/run")
    state = client.get(f"/api/designer/sessions/{sid}/state").get_json()
    assert state["stage"] == "done"
    assert state["tiles"]["encoding"] == "rle"
    tiles = decode_tiles_rle(state["tiles"]["data"])
    assert len(tiles) == state["width"] * state["height"] == 40 * 30
    assert len(state["corridorPlans"]) == len(state["graphAcceptedEdges"])


def test_overlay_endpoint(client):
    sid = _create(client, config=SMALL)["id"]
    assert client.get(f"/api/designer/sessions/{sid}/overlay").get_json() == {
        "stage": "init",
        "message": "Initialized.",
    }
    client.post(f"/api/designer/sessions/{sid}/step", json={"count": 2})
    overlay = client.get(f"/api/designer/sessions/{sid}/overlay").get_json()
    assert overlay["stage"] == "bsp"
    assert "partitions" in overlay


def test_exports(client):
    sid = _create(client, seed="Crypt 7", config=SMALL)["id"]
    client.post(f"/api/designer/sessions/{sid}/run")
    resp = client.get(f"/api/designer/sessions/{sid}/export.json")
    assert resp.status_code == 200
    assert resp.headers["Content-Disposition"] == "attachment; filename=crypt-7-level.json"
    bundle = resp.get_json()
    assert bundle["seed"] == "Crypt 7"
    assert bundle["validation"]["roomsConnected"] is True
    resp = client.get(f"/api/designer/sessions/{sid}/export.csv")
    assert resp.mimetype == "text/csv"
    assert resp.headers["Content-Disposition"] == "attachment; filename=crypt-7-tiles.csv"
    assert len(resp.get_data(as_text=True).split("\n")) == 30


def test_delete_session(client):
    sid = _create(client)["id"]
    assert client.delete(f"/api/designer/sessions/{sid}").get_json() == {"deleted": sid}
    assert client.get(f"/api/designer/sessions/{sid}").status_code == 404


def test_oldest_session_evicted(client, monkeypatch):
    monkeypatch.setenv("DESIGNER_MAX_SESSIONS", "2")
    first = _create(client, seed="a")["id"]
    second = _create(client, seed="b")["id"]
    third = _create(client, seed="c")["id"]
    assert client.get(f"/api/designer/sessions/{first}").status_code == 404
    assert client.get(f"/api/designer/sessions/{second}").status_code == 200
    assert client.get(f"/api/designer/sessions/{third}").status_code == 200


def test_oversized_grid_rejected(client, monkeypatch):
    resp = client.post("/api/designer/sessions", json={"config": {"width": 100000, "height": 100000}})
    assert resp.status_code == 400
    assert resp.get_json()["field"] == "width"
    monkeypatch.setenv("DESIGNER_MAX_CELLS", "1200")
    assert client.get("/api/designer/defaults").get_json()["maxCells"] == 1200
    assert _create(client, config=SMALL)["config"]["width"] == 40
    resp = client.post("/api/designer/sessions", json={"config": {"width": 41, "height": 30}})
    assert resp.status_code == 400
