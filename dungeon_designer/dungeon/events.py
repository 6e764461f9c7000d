"""Step events returned by ``DungeonGenerator.next_step``.

One frozen dataclass per variant; ``type`` carries the wire tag. Events are
handed to the caller and never retained by the generator. Stage transition
steps reuse the variant of the stage being left with ``None`` in the id/rect
fields that have no referent.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Union

from .geometry import Point, Rect
from .models import CorridorPlan, CorridorStats, GraphEdge, RoomCandidate, SplitCandidate

PATH_PREVIEW_LIMIT = 80
ROOM_CANDIDATE_LIMIT = 12


def _rect(rect: Optional[Rect]):
    return rect.to_dict() if rect is not None else None


@dataclass(frozen=True)
class InitEvent:
    type: ClassVar[str] = "init"
    seed: str
    width: int
    height: int

    def to_dict(self):
        return {"type": self.type, "seed": self.seed, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class SplitChosenEvent:
    type: ClassVar[str] = "split-chosen"
    node_id: str
    rect: Rect
    candidates: Tuple[SplitCandidate, ...]
    chosen: SplitCandidate

    def to_dict(self):
        return {
            "type": self.type,
            "nodeId": self.node_id,
            "rect": self.rect.to_dict(),
            "candidates": [c.to_dict() for c in self.candidates],
            "chosen": self.chosen.to_dict(),
        }


@dataclass(frozen=True)
class SplitSkippedEvent:
    type: ClassVar[str] = "split-skipped"
    node_id: Optional[str]
    rect: Optional[Rect]
    reason: str

    def to_dict(self):
        return {"type": self.type, "nodeId": self.node_id, "rect": _rect(self.rect), "reason": self.reason}


@dataclass(frozen=True)
class RoomChosenEvent:
    type: ClassVar[str] = "room-chosen"
    leaf_id: str
    leaf_rect: Rect
    candidates: Tuple[RoomCandidate, ...]
    chosen: RoomCandidate

    def to_dict(self):
        return {
            "type": self.type,
            "leafId": self.leaf_id,
            "leafRect": self.leaf_rect.to_dict(),
            "candidates": [c.to_dict() for c in self.candidates],
            "chosen": self.chosen.to_dict(),
        }


@dataclass(frozen=True)
class RoomFallbackEvent:
    type: ClassVar[str] = "room-fallback"
    leaf_id: Optional[str]
    leaf_rect: Optional[Rect]
    reason: str
    chosen: Optional[RoomCandidate]

    def to_dict(self):
        return {
            "type": self.type,
            "leafId": self.leaf_id,
            "leafRect": _rect(self.leaf_rect),
            "reason": self.reason,
            "chosen": self.chosen.to_dict() if self.chosen is not None else None,
        }


@dataclass(frozen=True)
class GraphEdgeConsideredEvent:
    type: ClassVar[str] = "graph-edge-considered"
    edge: Optional[GraphEdge]
    accepted: bool
    reason: str

    def to_dict(self):
        return {
            "type": self.type,
            "edge": self.edge.to_dict() if self.edge is not None else None,
            "accepted": self.accepted,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class GraphLoopAddedEvent:
    type: ClassVar[str] = "graph-loop-added"
    edge: GraphEdge
    reason: str

    def to_dict(self):
        return {"type": self.type, "edge": self.edge.to_dict(), "reason": self.reason}


@dataclass(frozen=True)
class PlanPreview:
    """A corridor plan without its full path."""

    from_room: str
    to_room: str
    start: Point
    goal: Point
    stats: CorridorStats
    path_preview: Tuple[Point, ...]

    @classmethod
    def of(cls, plan: CorridorPlan, limit: int = PATH_PREVIEW_LIMIT) -> "PlanPreview":
        return cls(plan.from_room, plan.to_room, plan.start, plan.goal, plan.stats, tuple(plan.path[:limit]))

    def to_dict(self):
        return {
            "fromRoom": self.from_room,
            "toRoom": self.to_room,
            "start": self.start.to_dict(),
            "goal": self.goal.to_dict(),
            "stats": self.stats.to_dict(),
            "pathPreview": [p.to_dict() for p in self.path_preview],
        }


@dataclass(frozen=True)
class CorridorPathFoundEvent:
    type: ClassVar[str] = "corridor-path-found"
    plan: Optional[PlanPreview]

    def to_dict(self):
        return {"type": self.type, "plan": self.plan.to_dict() if self.plan is not None else None}


@dataclass(frozen=True)
class CorridorCarveCellEvent:
    type: ClassVar[str] = "corridor-carve-cell"
    point: Optional[Point]
    index: int
    total: int

    def to_dict(self):
        point = self.point.to_dict() if self.point is not None else None
        return {"type": self.type, "point": point, "index": self.index, "total": self.total}


@dataclass(frozen=True)
class DoorPlacedEvent:
    type: ClassVar[str] = "door-placed"
    point: Point
    room_id: str
    reason: str

    def to_dict(self):
        return {"type": self.type, "point": self.point.to_dict(), "roomId": self.room_id, "reason": self.reason}


@dataclass(frozen=True)
class DoneEvent:
    type: ClassVar[str] = "done"
    rooms: int
    corridors: int

    def to_dict(self):
        return {"type": self.type, "rooms": self.rooms, "corridors": self.corridors}


GenEvent = Union[
    InitEvent,
    SplitChosenEvent,
    SplitSkippedEvent,
    RoomChosenEvent,
    RoomFallbackEvent,
    GraphEdgeConsideredEvent,
    GraphLoopAddedEvent,
    CorridorPathFoundEvent,
    CorridorCarveCellEvent,
    DoorPlacedEvent,
    DoneEvent,
]


__all__ = [
    "GenEvent",
    "PATH_PREVIEW_LIMIT",
    "ROOM_CANDIDATE_LIMIT",
    "InitEvent",
    "SplitChosenEvent",
    "SplitSkippedEvent",
    "RoomChosenEvent",
    "RoomFallbackEvent",
    "GraphEdgeConsideredEvent",
    "GraphLoopAddedEvent",
    "PlanPreview",
    "CorridorPathFoundEvent",
    "CorridorCarveCellEvent",
    "DoorPlacedEvent",
    "DoneEvent",
]
