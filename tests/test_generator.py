import pytest

from dungeon_designer.dungeon import DungeonGenerator, Stage
from dungeon_designer.dungeon.connectivity import rooms_connected
from dungeon_designer.dungeon.errors import GenerationInvariantError, UnknownPartitionError, UnknownRoomError
from dungeon_designer.dungeon.events import ROOM_CANDIDATE_LIMIT
from dungeon_designer.dungeon.models import STAGE_ORDER
from dungeon_designer.dungeon.tiles import CORRIDOR, DOOR, ROOM, WALL
from dungeon_designer.settings import default_config

from tests.dungeon_test_utils import (
    assert_partitions_tile_root,
    events_of,
    run_all,
    step_until,
    walkable_reachable,
)


def test_first_step_is_init(designer_config):
    gen = DungeonGenerator("dungeon-001", designer_config)
    assert gen.stage is Stage.INIT
    ev = gen.next_step()
    assert ev.type == "init"
    assert (ev.seed, ev.width, ev.height) == ("dungeon-001", 80, 50)
    assert gen.stage is Stage.BSP
    root = gen.get_state().partitions["p1"]
    assert root.rect == (0, 0, 80, 50) and root.is_leaf


def test_scenario_is_reproducible(designer_config):
    runs = []
    for _ in range(2):
        gen = DungeonGenerator("dungeon-001", designer_config)
        events = run_all(gen)
        state = gen.get_state()
        runs.append(
            (
                [ev.to_dict() for ev in events],
                len(state.rooms),
                len(state.graph_accepted_edges),
                bytes(state.tiles),
            )
        )
    assert runs[0] == runs[1]
    assert runs[0][1] > 1


def test_other_seed_differs(designer_config):
    a = DungeonGenerator("dungeon-001", designer_config)
    b = DungeonGenerator("dungeon-002", designer_config)
    run_all(a)
    run_all(b)
    assert bytes(a.get_state().tiles) != bytes(b.get_state().tiles)


def test_stages_only_move_forward(small_config):
    gen = DungeonGenerator("forward", small_config)
    order = {stage: i for i, stage in enumerate(STAGE_ORDER)}
    prev = gen.stage
    while not gen.is_done():
        gen.next_step()
        cur = gen.stage
        # corridor-carve hands back to corridor-plan for the next edge
        if not (prev is Stage.CORRIDOR_CARVE and cur is Stage.CORRIDOR_PLAN):
            assert order[cur] >= order[prev]
        prev = cur


def test_partitions_tile_root_at_every_step(designer_config):
    gen = DungeonGenerator("tiling", designer_config)
    gen.next_step()
    while gen.stage is Stage.BSP:
        gen.next_step()
        assert_partitions_tile_root(gen.get_state())


def test_partition_tree_shape(designer_config):
    gen = DungeonGenerator("tree", designer_config)
    events = step_until(gen, lambda g: g.stage is Stage.ROOMS)
    state = gen.get_state()
    cfg = designer_config
    for node in state.partitions.values():
        assert node.depth <= cfg.max_depth
        if node.parent is not None:
            assert node.rect.w >= cfg.min_leaf_size and node.rect.h >= cfg.min_leaf_size
        if node.is_leaf:
            assert node.split is None
        else:
            left = state.partitions[node.split.left]
            right = state.partitions[node.split.right]
            assert left.parent == right.parent == node.id
            assert left.rect.area + right.rect.area == node.rect.area
    for ev in events_of(events, "split-chosen"):
        assert ev.chosen is ev.candidates[0]
        scores = [c.score for c in ev.candidates]
        assert scores == sorted(scores, reverse=True)
        assert len(ev.candidates) <= cfg.split_candidates
    # leaf queue is the leaves in arena order
    assert state.leaf_queue == [p.id for p in state.leaves()]


def test_bsp_transition_event(designer_config):
    gen = DungeonGenerator("transition", designer_config)
    events = step_until(gen, lambda g: g.stage is Stage.ROOMS)
    last = events[-1]
    assert last.type == "split-skipped"
    assert last.node_id is None and last.rect is None
    assert last.reason == "BSP complete. Moving to rooms."


def test_rooms_stay_inside_leaves(designer_config):
    cfg = designer_config
    gen = DungeonGenerator("rooms", cfg)
    events = step_until(gen, lambda g: g.stage is Stage.GRAPH)
    state = gen.get_state()
    placed = []
    for ev in events:
        if ev.type == "room-chosen":
            usable = ev.leaf_rect.shrink(cfg.room_margin)
            rect = ev.chosen.rect
            assert usable.contains_rect(rect)
            assert rect.w >= cfg.room_min_size and rect.h >= cfg.room_min_size
            assert not any(rect.expand(cfg.room_buffer).intersects(other) for other in placed)
            assert len(ev.candidates) <= ROOM_CANDIDATE_LIMIT
            assert ev.candidates[0] == ev.chosen
            placed.append(rect)
        elif ev.type == "room-fallback" and ev.chosen is not None:
            assert ev.leaf_rect.contains_rect(ev.chosen.rect)
            placed.append(ev.chosen.rect)
    assert [r.rect for r in state.rooms] == placed
    assert len(state.rooms) == len(state.leaves())
    for room in state.rooms:
        assert all(state.tile_at(x, y) == ROOM for x, y in room.rect.cells())


def test_ids_share_one_counter(small_config):
    gen = DungeonGenerator("ids", small_config)
    step_until(gen, lambda g: g.stage is Stage.GRAPH)
    state = gen.get_state()
    partition_numbers = {int(pid[1:]) for pid in state.partitions}
    room_numbers = {int(r.id[1:]) for r in state.rooms}
    assert not partition_numbers & room_numbers
    assert min(room_numbers) > max(partition_numbers)


def test_spanning_tree_before_loops(designer_config):
    gen = DungeonGenerator("loops", designer_config.merged({"extraLoopChance": 1.0}))
    events = step_until(gen, lambda g: g.stage is Stage.CORRIDOR_PLAN)
    state = gen.get_state()
    n = len(state.rooms)
    tree_edges = 0
    loops = 0
    for ev in events:
        if ev.type == "graph-edge-considered" and ev.edge is not None and ev.accepted:
            assert loops == 0
            tree_edges += 1
        elif ev.type == "graph-loop-added":
            assert tree_edges == n - 1
            loops += 1
    assert tree_edges == n - 1
    assert loops <= designer_config.max_loops
    assert len(state.graph_accepted_edges) == n - 1 + loops
    assert rooms_connected(state.rooms, state.graph_accepted_edges)
    assert events[-1].reason == "Graph complete. Moving to corridors."


def test_no_loops_when_disabled(designer_config):
    gen = DungeonGenerator("tree-only", designer_config.merged({"maxLoops": 0}))
    events = step_until(gen, lambda g: g.stage is Stage.CORRIDOR_PLAN)
    assert not events_of(events, "graph-loop-added")
    assert len(gen.get_state().graph_accepted_edges) == len(gen.get_state().rooms) - 1


def test_candidate_edges_are_normalized(designer_config):
    gen = DungeonGenerator("edges", designer_config)
    step_until(gen, lambda g: g.stage is Stage.GRAPH)
    edges = gen.get_state().graph_candidate_edges
    weights = [e.weight for e in edges]
    assert weights == sorted(weights)
    assert all(e.a < e.b for e in edges)
    assert len({e.key for e in edges}) == len(edges)


def test_carving_only_converts_rock(small_config):
    gen = DungeonGenerator("carve", small_config)
    step_until(gen, lambda g: g.stage is Stage.CORRIDOR_PLAN)
    before = bytes(gen.get_state().tiles)
    while not gen.is_done():
        stage = gen.stage
        gen.next_step()
        after = bytes(gen.get_state().tiles)
        for old, new in zip(before, after):
            if old == new:
                continue
            if stage is Stage.CORRIDOR_CARVE:
                assert (old, new) == (WALL, CORRIDOR)
            else:
                assert stage is Stage.POST
                assert old in (ROOM, CORRIDOR) and new == DOOR
        before = after


def test_carve_events_walk_the_path(small_config):
    gen = DungeonGenerator("walk", small_config)
    step_until(gen, lambda g: g.stage is Stage.CORRIDOR_PLAN)
    plan_ev = gen.next_step()
    assert plan_ev.type == "corridor-path-found"
    plan = gen.get_overlay().corridor_plan
    events = step_until(gen, lambda g: g.stage is not Stage.CORRIDOR_CARVE)
    total = len(plan.path)
    assert [ev.index for ev in events] == list(range(1, total + 1)) + [total]
    assert [ev.point for ev in events[:-1]] == plan.path
    assert events[-1].point == plan.goal
    assert all(ev.total == total for ev in events)
    assert plan_ev.plan.path_preview == tuple(plan.path[:80])


def test_completion_is_consistent(designer_config):
    gen = DungeonGenerator("complete", designer_config)
    events = run_all(gen)
    state = gen.get_state()
    done = events[-1]
    assert done.type == "done"
    assert done.rooms == len(state.rooms)
    assert done.corridors == len(state.graph_accepted_edges) == len(state.corridor_plans)
    for edge, plan in zip(state.graph_accepted_edges, state.corridor_plans):
        assert (plan.from_room, plan.to_room) == (edge.a, edge.b)
        assert plan.path[0] == plan.start and plan.path[-1] == plan.goal
        assert state.tile_at(*plan.start) == DOOR
        assert state.tile_at(*plan.goal) == DOOR
        assert all(state.tile_at(*p) != WALL for p in plan.path)
    doors = events_of(events, "door-placed")
    assert len(doors) == len(state.corridor_plans)
    assert [d.point for d in doors] == [p.start for p in state.corridor_plans]


def test_every_room_reachable_on_the_grid(designer_config):
    gen = DungeonGenerator("reach", designer_config)
    run_all(gen)
    state = gen.get_state()
    reach = walkable_reachable(state, state.rooms[0].center)
    for room in state.rooms:
        assert tuple(room.center) in reach


def test_done_is_idempotent(small_config):
    gen = DungeonGenerator("idem", small_config)
    done = run_all(gen)[-1]
    tiles = bytes(gen.get_state().tiles)
    assert gen.next_step() == done
    assert gen.next_step() == done
    assert gen.is_done()
    assert bytes(gen.get_state().tiles) == tiles


def test_single_room_has_no_corridors():
    cfg = default_config().merged({"width": 20, "height": 16, "maxDepth": 0, "roomMinSize": 4})
    gen = DungeonGenerator("solo", cfg)
    events = run_all(gen)
    reasons = [ev.reason for ev in events_of(events, "graph-edge-considered")]
    assert reasons == ["Not enough rooms."]
    assert events[-1].rooms == 1 and events[-1].corridors == 0
    assert gen.get_state().tiles.count(DOOR) == 0
    skipped = events_of(events, "split-skipped")
    assert skipped[0].reason == "Max depth reached."


def test_tiny_leaf_falls_back():
    cfg = default_config().merged({"width": 5, "height": 5, "roomMinSize": 6})
    gen = DungeonGenerator("tiny", cfg)
    events = run_all(gen)
    fallbacks = [ev for ev in events_of(events, "room-fallback") if ev.chosen is not None]
    assert len(fallbacks) == 1
    assert fallbacks[0].reason == "No candidates fit min size/margins."
    room = gen.get_state().rooms[0]
    assert (0, 0, 5, 5) != tuple(room.rect)
    assert room.rect.area >= 1
    skipped = events_of(events, "split-skipped")
    assert skipped[0].reason == "Partition too small to split further."


def test_events_serialize_with_type_tags(small_config):
    gen = DungeonGenerator("wire", small_config)
    for ev in run_all(gen):
        data = ev.to_dict()
        assert data["type"] == ev.type


def test_missing_ids_raise(small_config):
    gen = DungeonGenerator("ids", small_config)
    with pytest.raises(UnknownPartitionError) as exc:
        gen._partition("p999")
    assert isinstance(exc.value, KeyError)
    with pytest.raises(UnknownRoomError):
        gen._room("r999")
    assert issubclass(UnknownRoomError, GenerationInvariantError)


def test_zero_room_candidates_place_fallback_rooms(small_config):
    gen = DungeonGenerator("fallbacks", small_config.merged({"roomCandidates": 0, "kNearest": 0}))
    events = run_all(gen)
    state = gen.get_state()
    assert not events_of(events, "room-chosen")
    placed = [ev for ev in events_of(events, "room-fallback") if ev.chosen is not None]
    assert len(placed) == len(state.rooms) == len(state.leaves())
    assert all(ev.reason == "No candidates fit min size/margins." for ev in placed)
    # kNearest 0 still links every room to its nearest neighbour
    assert rooms_connected(state.rooms, state.graph_accepted_edges)


def test_zero_split_candidates_leave_one_leaf(small_config):
    cfg = small_config.merged({"splitCandidates": 0, "roomCandidates": 0, "kNearest": 0})
    gen = DungeonGenerator("no-splits", cfg)
    events = run_all(gen)
    assert not events_of(events, "split-chosen")
    assert events_of(events, "split-skipped")[0].reason == "No valid split candidates."
    assert len(gen.get_state().rooms) == 1
    assert events[-1].rooms == 1 and events[-1].corridors == 0
