from dungeon_designer.dungeon import DungeonGenerator, run_to_completion
from dungeon_designer.dungeon.tiles import CORRIDOR, DOOR, ROOM

from tests.dungeon_test_utils import run_all


def test_run_reports_completion(small_config):
    gen = DungeonGenerator("pipeline", small_config)
    report = run_to_completion(gen)
    state = gen.get_state()
    assert report.completed and gen.is_done()
    assert report.final_event.type == "done"
    assert report.steps == sum(report.stage_steps.values())
    assert report.stage_steps["init"] == 1
    assert set(report.phase_ms) == set(report.stage_steps)
    m = report.metrics
    assert m["rooms_placed"] == len(state.rooms)
    assert m["corridors_planned"] == len(state.corridor_plans)
    assert m["doors_placed"] == len(state.corridor_plans)
    assert m["edges_accepted"] + m["loops_added"] == len(state.graph_accepted_edges)
    assert m["room_tiles"] == state.tiles.count(ROOM)
    assert m["corridor_tiles"] == state.tiles.count(CORRIDOR)
    assert m["door_tiles"] == state.tiles.count(DOOR)
    assert m["corridors_unreachable"] == 0


def test_run_matches_manual_stepping(small_config):
    manual = DungeonGenerator("same", small_config)
    events = run_all(manual)
    seen = []
    batch = DungeonGenerator("same", small_config)
    report = run_to_completion(batch, on_event=seen.append)
    assert [e.to_dict() for e in seen] == [e.to_dict() for e in events]
    assert report.steps == len(events)
    assert bytes(batch.get_state().tiles) == bytes(manual.get_state().tiles)


def test_max_steps_pauses(small_config):
    gen = DungeonGenerator("pause", small_config)
    report = run_to_completion(gen, max_steps=3)
    assert not report.completed
    assert report.steps == 3
    assert report.final_event.type in ("split-chosen", "split-skipped")
    assert report.stage_steps == {"init": 1, "bsp": 2}
    resumed = run_to_completion(gen)
    assert resumed.completed
    assert "init" not in resumed.stage_steps


def test_already_done_generator(small_config):
    gen = DungeonGenerator("again", small_config)
    run_to_completion(gen)
    tiles = bytes(gen.get_state().tiles)
    report = run_to_completion(gen)
    assert report.completed
    assert report.steps == 0
    assert report.stage_steps == {}
    assert report.final_event.type == "done"
    assert bytes(gen.get_state().tiles) == tiles


def test_report_to_dict(small_config):
    report = run_to_completion(DungeonGenerator("dict", small_config))
    data = report.to_dict()
    assert data["seed"] == "dict"
    assert data["finalEvent"]["type"] == "done"
    assert set(data) == {"seed", "completed", "steps", "finalEvent", "stageSteps", "phaseMs", "metrics"}
