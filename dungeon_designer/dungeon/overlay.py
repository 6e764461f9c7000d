"""Read-only visualization snapshot.

The overlay is never stored. ``derive_overlay`` rebuilds it from canonical
generator state plus the most recent step event each time it is requested,
so a stage transition can never leave stale partial data behind.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .events import (
    CorridorCarveCellEvent,
    CorridorPathFoundEvent,
    DoorPlacedEvent,
    GraphEdgeConsideredEvent,
    GraphLoopAddedEvent,
    RoomChosenEvent,
    RoomFallbackEvent,
    SplitChosenEvent,
    SplitSkippedEvent,
)
from .geometry import Rect
from .models import CorridorPlan, DungeonState, GraphEdge, RoomCandidate, SplitCandidate, Stage

GRAPH_CANDIDATE_WINDOW = 40


@dataclass(frozen=True)
class Overlay:
    stage: Stage
    message: str
    partitions: Optional[Tuple[Rect, ...]] = None
    split_candidates: Optional[Tuple[SplitCandidate, ...]] = None
    room_leaf: Optional[Rect] = None
    room_candidates: Optional[Tuple[RoomCandidate, ...]] = None
    chosen_room: Optional[Rect] = None
    graph_candidate_edges: Optional[Tuple[GraphEdge, ...]] = None
    graph_accepted_edges: Optional[Tuple[GraphEdge, ...]] = None
    corridor_plan: Optional[CorridorPlan] = None
    carving_index: Optional[int] = None

    def to_dict(self):
        data = {"stage": self.stage.value, "message": self.message}
        if self.partitions is not None:
            data["partitions"] = [r.to_dict() for r in self.partitions]
        if self.split_candidates is not None:
            data["splitCandidates"] = [c.to_dict() for c in self.split_candidates]
        if self.room_leaf is not None:
            data["roomLeaf"] = self.room_leaf.to_dict()
        if self.room_candidates is not None:
            data["roomCandidates"] = [c.to_dict() for c in self.room_candidates]
        if self.chosen_room is not None:
            data["chosenRoom"] = self.chosen_room.to_dict()
        if self.graph_candidate_edges is not None:
            data["graphCandidateEdges"] = [e.to_dict() for e in self.graph_candidate_edges]
        if self.graph_accepted_edges is not None:
            data["graphAcceptedEdges"] = [e.to_dict() for e in self.graph_accepted_edges]
        if self.corridor_plan is not None:
            data["corridorPlan"] = self.corridor_plan.to_dict()
        if self.carving_index is not None:
            data["carvingIndex"] = self.carving_index
        return data


def _partitions(state: DungeonState) -> Tuple[Rect, ...]:
    return tuple(p.rect for p in state.partitions.values())


def _accepted(state: DungeonState) -> Tuple[GraphEdge, ...]:
    return tuple(state.graph_accepted_edges)


def _candidates_head(state: DungeonState) -> Tuple[GraphEdge, ...]:
    return tuple(state.graph_candidate_edges[:GRAPH_CANDIDATE_WINDOW])


def derive_overlay(
    state: DungeonState,
    last_event=None,
    graph_edge_index: int = 0,
    corridor_work: Optional[Tuple[CorridorPlan, int]] = None,
) -> Overlay:
    stage = state.stage
    ev = last_event

    if stage is Stage.INIT or ev is None:
        return Overlay(stage, "Initialized.")

    if stage is Stage.BSP:
        if isinstance(ev, SplitChosenEvent):
            c = ev.chosen
            return Overlay(
                stage,
                f"Split chosen: {c.orientation} at {c.line}",
                partitions=_partitions(state),
                split_candidates=ev.candidates,
            )
        if isinstance(ev, SplitSkippedEvent):
            return Overlay(stage, f"BSP: {ev.reason}", partitions=_partitions(state))
        return Overlay(stage, "BSP: splitting partitions.", partitions=_partitions(state))

    if stage is Stage.ROOMS:
        if isinstance(ev, RoomChosenEvent):
            return Overlay(
                stage,
                f"Room chosen (score {ev.chosen.score:.2f}).",
                room_leaf=ev.leaf_rect,
                room_candidates=ev.candidates,
                chosen_room=ev.chosen.rect,
            )
        if isinstance(ev, RoomFallbackEvent) and ev.chosen is not None:
            return Overlay(
                stage,
                "Room fallback (no valid candidates).",
                room_leaf=ev.leaf_rect,
                room_candidates=(),
                chosen_room=ev.chosen.rect,
            )
        return Overlay(stage, "Room placement: choosing best candidate per leaf.")

    if stage is Stage.GRAPH:
        if isinstance(ev, GraphEdgeConsideredEvent) and ev.edge is not None:
            lo = max(0, graph_edge_index - 25)
            return Overlay(
                stage,
                "MST: accepted edge." if ev.accepted else "MST: rejected edge (cycle).",
                graph_candidate_edges=tuple(state.graph_candidate_edges[lo:graph_edge_index + 5]),
                graph_accepted_edges=_accepted(state),
            )
        if isinstance(ev, GraphLoopAddedEvent):
            return Overlay(
                stage,
                "Loop: added extra edge.",
                graph_candidate_edges=_candidates_head(state),
                graph_accepted_edges=_accepted(state),
            )
        return Overlay(
            stage,
            "Graph: building MST (Kruskal), one edge considered per step.",
            graph_candidate_edges=_candidates_head(state),
            graph_accepted_edges=(),
        )

    if stage is Stage.CORRIDOR_PLAN:
        if isinstance(ev, CorridorCarveCellEvent):
            return Overlay(stage, "Corridor carved. Planning next corridor.")
        if len(state.rooms) <= 1:
            return Overlay(stage, "No corridors needed (0 or 1 room).")
        return Overlay(
            stage,
            "Corridors: compute A* path per accepted edge, then carve cell-by-cell.",
            graph_accepted_edges=_accepted(state),
        )

    if stage is Stage.CORRIDOR_CARVE and corridor_work is not None:
        plan, carve_index = corridor_work
        if isinstance(ev, CorridorPathFoundEvent):
            message = "Corridor: carving path cell-by-cell."
        else:
            message = f"Carving corridor: {carve_index}/{len(plan.path)}"
        return Overlay(stage, message, corridor_plan=plan, carving_index=carve_index)

    if stage is Stage.POST:
        if isinstance(ev, DoorPlacedEvent):
            return Overlay(stage, "Placed doors for one corridor.")
        return Overlay(stage, "Post: placing doors on room boundaries.")

    if stage is Stage.DONE:
        return Overlay(stage, "Done.")

    return Overlay(stage, "")


__all__ = ["Overlay", "derive_overlay", "GRAPH_CANDIDATE_WINDOW"]
