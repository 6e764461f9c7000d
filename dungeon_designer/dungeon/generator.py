"""Step-by-step dungeon generator: BSP partitioning, room placement, room graph, corridor carving.

Stages run in a fixed order and never go back::

    init -> bsp -> rooms -> graph -> corridor-plan <-> corridor-carve -> post -> done

Each ``next_step()`` call performs exactly one unit of work (one partition
split or skip, one room, one Kruskal/loop edge decision, one corridor plan,
one carved cell, one corridor's doors) and returns the event describing it.
Transition steps (queue exhausted) emit an event of the stage being left.

All randomness comes from the generator's own ``SeededRNG``; the sequence of
RNG calls is part of the output contract, so reordering draws across stages
changes every dungeon downstream.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ..logging_utils import get_logger
from .astar import find_path
from .config import DungeonConfig
from .connectivity import build_candidate_edges
from .errors import GenerationInvariantError, UnknownPartitionError, UnknownRoomError
from .events import (
    ROOM_CANDIDATE_LIMIT,
    CorridorCarveCellEvent,
    CorridorPathFoundEvent,
    DoneEvent,
    DoorPlacedEvent,
    GenEvent,
    GraphEdgeConsideredEvent,
    GraphLoopAddedEvent,
    InitEvent,
    PlanPreview,
    RoomChosenEvent,
    RoomFallbackEvent,
    SplitChosenEvent,
    SplitSkippedEvent,
)
from .geometry import Rect, aspect_ratio, nearest_point_on_perimeter
from .models import (
    HORIZONTAL,
    VERTICAL,
    CorridorPlan,
    CorridorStats,
    DungeonState,
    PartitionNode,
    PartitionSplit,
    Room,
    SplitCandidate,
    Stage,
)
from .overlay import Overlay, derive_overlay
from .rng import SeededRNG
from .rooms import carve_room, fallback_room, make_room_candidates, rank_candidates
from .tiles import CORRIDOR, DOOR, ROOM, WALL
from .union_find import DisjointSet

log = get_logger("dungeon_designer.generator")

# Orientation preference kicks in once one side is this much longer than the other
PREFERENCE_RATIO = 1.25


class DungeonGenerator:
    def __init__(self, seed: str, config: DungeonConfig):
        self.seed = seed
        self.config = config
        self._rng = SeededRNG(seed)
        self._next_id = 1

        tiles = bytearray(config.width * config.height)  # zero-filled == WALL
        self._state = DungeonState(stage=Stage.INIT, tiles=tiles, width=config.width, height=config.height)
        root = PartitionNode(id=self._make_id("p"), rect=Rect(0, 0, config.width, config.height), depth=0)
        self._state.partitions[root.id] = root
        self._bsp_queue: List[str] = [root.id]

        self._graph_edge_index = 0
        self._dsu: Optional[DisjointSet] = None
        self._corridor_edge_index = 0
        self._corridor_work: Optional[Tuple[CorridorPlan, int]] = None
        self._corridors_carved = 0
        self._post_index = 0
        self._last_event: Optional[GenEvent] = None

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------
    @property
    def stage(self) -> Stage:
        return self._state.stage

    def get_state(self) -> DungeonState:
        """Live state; valid until the next ``next_step()`` call. Do not mutate."""
        return self._state

    def get_overlay(self) -> Overlay:
        return derive_overlay(
            self._state,
            self._last_event,
            graph_edge_index=self._graph_edge_index,
            corridor_work=self._corridor_work,
        )

    def is_done(self) -> bool:
        return self._state.stage is Stage.DONE

    def next_step(self) -> GenEvent:
        handler = self._HANDLERS[self._state.stage]
        event = handler(self)
        self._last_event = event
        return event

    # ------------------------------------------------------------------
    # init
    # ------------------------------------------------------------------
    def _step_init(self) -> GenEvent:
        self._enter(Stage.BSP)
        return InitEvent(self.seed, self.config.width, self.config.height)

    # ------------------------------------------------------------------
    # BSP
    # ------------------------------------------------------------------
    def _step_bsp(self) -> GenEvent:
        if not self._bsp_queue:
            self._state.leaf_queue = [p.id for p in self._state.leaves()]
            self._enter(Stage.ROOMS)
            return SplitSkippedEvent(None, None, "BSP complete. Moving to rooms.")

        node_id = self._bsp_queue.pop()
        node = self._partition(node_id)
        r = node.rect
        cfg = self.config
        if node.depth >= cfg.max_depth:
            return SplitSkippedEvent(node_id, r, "Max depth reached.")
        if r.w < cfg.min_leaf_size * 2 or r.h < cfg.min_leaf_size * 2:
            return SplitSkippedEvent(node_id, r, "Partition too small to split further.")

        candidates = self._split_candidates(r)
        if not candidates:
            return SplitSkippedEvent(node_id, r, "No valid split candidates.")
        candidates.sort(key=lambda c: c.score, reverse=True)
        chosen = candidates[0]

        left = PartitionNode(id=self._make_id("p"), rect=chosen.a, depth=node.depth + 1, parent=node.id)
        right = PartitionNode(id=self._make_id("p"), rect=chosen.b, depth=node.depth + 1, parent=node.id)
        node.is_leaf = False
        node.split = PartitionSplit(chosen.orientation, chosen.line, left.id, right.id)
        self._state.partitions[left.id] = left
        self._state.partitions[right.id] = right
        self._bsp_queue.extend((left.id, right.id))
        return SplitChosenEvent(node_id, r, tuple(candidates), chosen)

    def _split_candidates(self, r: Rect) -> List[SplitCandidate]:
        """Sample up to ``split_candidates`` cuts, preferred orientation first.

        The second orientation is only tried when the first yields nothing.
        """
        rng = self._rng
        n = self.config.split_candidates
        low = self.config.min_leaf_size
        if r.w / r.h > PREFERENCE_RATIO:
            prefer = VERTICAL
        elif r.h / r.w > PREFERENCE_RATIO:
            prefer = HORIZONTAL
        else:
            prefer = VERTICAL if rng.next() < 0.5 else HORIZONTAL
        orientations = (VERTICAL, HORIZONTAL) if prefer == VERTICAL else (HORIZONTAL, VERTICAL)

        out: List[SplitCandidate] = []
        for orientation in orientations:
            for _ in range(n):
                if orientation == VERTICAL:
                    line = rng.int_in_range(r.x + low, r.x + r.w - low)
                    a = Rect(r.x, r.y, line - r.x, r.h)
                    b = Rect(line, r.y, r.x2 - line, r.h)
                else:
                    line = rng.int_in_range(r.y + low, r.y + r.h - low)
                    a = Rect(r.x, r.y, r.w, line - r.y)
                    b = Rect(r.x, line, r.w, r.y2 - line)
                scored = self._score_split(a, b)
                if scored is not None:
                    out.append(SplitCandidate(orientation, line, a, b, scored[0], scored[1]))
            if out:
                break
        return out

    def _score_split(self, a: Rect, b: Rect) -> Optional[Tuple[float, Dict[str, float]]]:
        """Weighted area balance plus squareness of both halves; None if a half is undersized."""
        low = self.config.min_leaf_size
        if a.w < low or a.h < low or b.w < low or b.h < low:
            return None
        total = a.area + b.area
        balance = 1 - abs(a.area - b.area) / total
        breakdown = {
            "balance": balance * 10,
            "aspect": (aspect_ratio(a.w, a.h) + aspect_ratio(b.w, b.h)) * 5,
        }
        return breakdown["balance"] + breakdown["aspect"], breakdown

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------
    def _step_rooms(self) -> GenEvent:
        state = self._state
        if not state.leaf_queue:
            state.graph_candidate_edges = build_candidate_edges(state.rooms, self.config.k_nearest)
            state.graph_accepted_edges = []
            self._dsu = DisjointSet(r.id for r in state.rooms)
            self._graph_edge_index = 0
            self._enter(Stage.GRAPH)
            return RoomFallbackEvent(None, None, "Rooms complete. Moving to graph.", None)

        leaf_id = state.leaf_queue.pop(0)
        leaf_rect = self._partition(leaf_id).rect
        candidates = make_room_candidates(leaf_rect, state.rooms, self.config, self._rng)
        if not candidates:
            chosen = fallback_room(leaf_rect, self.config)
            self._place_room(leaf_id, chosen.rect)
            return RoomFallbackEvent(leaf_id, leaf_rect, "No candidates fit min size/margins.", chosen)

        ranked = rank_candidates(candidates)
        chosen = ranked[0]
        self._place_room(leaf_id, chosen.rect)
        return RoomChosenEvent(leaf_id, leaf_rect, tuple(ranked[:ROOM_CANDIDATE_LIMIT]), chosen)

    def _place_room(self, leaf_id: str, rect: Rect) -> None:
        room = Room(id=self._make_id("r"), rect=rect, center=rect.center, leaf_id=leaf_id)
        self._state.rooms.append(room)
        carve_room(self._state.tiles, self._state.width, rect)

    # ------------------------------------------------------------------
    # Graph (randomized Kruskal, then optional loops)
    # ------------------------------------------------------------------
    def _step_graph(self) -> GenEvent:
        if self._dsu is None:
            raise GenerationInvariantError("DisjointSet missing in graph stage")
        state = self._state
        rooms = state.rooms
        if len(rooms) <= 1:
            self._enter(Stage.CORRIDOR_PLAN)
            return GraphEdgeConsideredEvent(None, False, "Not enough rooms.")

        target = len(rooms) - 1
        accepted = state.graph_accepted_edges
        candidates = state.graph_candidate_edges

        if len(accepted) < target and self._graph_edge_index < len(candidates):
            edge = candidates[self._graph_edge_index]
            self._graph_edge_index += 1
            merged = self._dsu.union(edge.a, edge.b)
            if merged:
                accepted.append(edge)
            reason = "Connected two components (Kruskal)." if merged else "Would create a cycle (Kruskal)."
            return GraphEdgeConsideredEvent(edge, merged, reason)

        if len(accepted) >= target:
            taken = {e.key for e in accepted}
            non_tree = [e for e in candidates if e.key not in taken]
            max_loops = max(0, min(self.config.max_loops, len(non_tree)))
            loops = len(accepted) - target
            if loops < max_loops and non_tree and self._rng.next() < self.config.extra_loop_chance:
                edge = non_tree[self._rng.int_in_range(0, len(non_tree) - 1)]
                accepted.append(edge)
                return GraphLoopAddedEvent(edge, "Added loop for alternate routes (loopiness).")

        self._corridor_edge_index = 0
        self._enter(Stage.CORRIDOR_PLAN)
        return GraphEdgeConsideredEvent(None, False, "Graph complete. Moving to corridors.")

    # ------------------------------------------------------------------
    # Corridors
    # ------------------------------------------------------------------
    def _step_corridor_plan(self) -> GenEvent:
        state = self._state
        edges = state.graph_accepted_edges
        if self._corridor_edge_index >= len(edges):
            self._post_index = 0
            self._enter(Stage.POST)
            return CorridorPathFoundEvent(None)

        edge = edges[self._corridor_edge_index]
        self._corridor_edge_index += 1
        ra, rb = self._room(edge.a), self._room(edge.b)
        start = nearest_point_on_perimeter(ra.rect, rb.center)
        goal = nearest_point_on_perimeter(rb.rect, ra.center)
        cfg = self.config
        result = find_path(
            state.tiles,
            state.width,
            state.height,
            start,
            goal,
            room_penalty=cfg.room_penalty,
            reuse_corridors_bias=cfg.reuse_corridors_bias,
            turn_penalty=cfg.turn_penalty,
        )
        plan = CorridorPlan(
            from_room=ra.id,
            to_room=rb.id,
            start=start,
            goal=goal,
            path=result.path,
            stats=CorridorStats(result.visited, len(result.path), result.cost),
        )
        self._corridor_work = (plan, 0)
        self._enter(Stage.CORRIDOR_CARVE)
        return CorridorPathFoundEvent(PlanPreview.of(plan))

    def _step_corridor_carve(self) -> GenEvent:
        state = self._state
        if self._corridor_work is None:
            raise GenerationInvariantError("no corridor plan to carve")

        plan, i = self._corridor_work
        total = len(plan.path)
        if i >= total:
            state.corridor_plans.append(plan)
            self._corridor_work = None
            self._corridors_carved += 1
            self._enter(Stage.CORRIDOR_PLAN)
            return CorridorCarveCellEvent(plan.goal, total, total)

        p = plan.path[i]
        k = p.y * state.width + p.x
        # Room cells on the path stay Room; only fresh rock becomes corridor
        if state.tiles[k] == WALL:
            state.tiles[k] = CORRIDOR
        self._corridor_work = (plan, i + 1)
        return CorridorCarveCellEvent(p, i + 1, total)

    # ------------------------------------------------------------------
    # Post: doors
    # ------------------------------------------------------------------
    def _step_post(self) -> GenEvent:
        state = self._state
        if self._post_index >= len(state.corridor_plans):
            self._enter(Stage.DONE)
            return self._done_event()

        plan = state.corridor_plans[self._post_index]
        self._post_index += 1
        for pt in (plan.start, plan.goal):
            k = pt.y * state.width + pt.x
            if state.tiles[k] in (ROOM, CORRIDOR):
                state.tiles[k] = DOOR
        # one event per corridor; it names the start point although both ends became doors
        return DoorPlacedEvent(plan.start, plan.from_room, "Door at corridor endpoint on room boundary.")

    def _step_done(self) -> GenEvent:
        return self._done_event()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _done_event(self) -> DoneEvent:
        return DoneEvent(len(self._state.rooms), self._corridors_carved)

    def _enter(self, stage: Stage) -> None:
        log.debug(event="stage_enter", seed=self.seed, stage=stage.value, previous=self._state.stage.value)
        self._state.stage = stage

    def _make_id(self, prefix: str) -> str:
        ident = f"{prefix}{self._next_id}"
        self._next_id += 1
        return ident

    def _partition(self, partition_id: str) -> PartitionNode:
        node = self._state.partitions.get(partition_id)
        if node is None:
            raise UnknownPartitionError(partition_id)
        return node

    def _room(self, room_id: str) -> Room:
        for room in self._state.rooms:
            if room.id == room_id:
                return room
        raise UnknownRoomError(room_id)

    _HANDLERS = {
        Stage.INIT: _step_init,
        Stage.BSP: _step_bsp,
        Stage.ROOMS: _step_rooms,
        Stage.GRAPH: _step_graph,
        Stage.CORRIDOR_PLAN: _step_corridor_plan,
        Stage.CORRIDOR_CARVE: _step_corridor_carve,
        Stage.POST: _step_post,
        Stage.DONE: _step_done,
    }


__all__ = ["DungeonGenerator"]
