"""Generator data model: partitions, rooms, graph edges, corridor plans, state.

Partitions form an arena keyed by string id (``p1``, ``p2`` ...). Parent and
child links are ids, never object references, so the whole tree serializes
and diffs as plain data.

Every type exposes ``to_dict()`` returning the wire form consumed by the
designer UI and the exporters (camelCase keys, non-finite floats as ``None``).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .geometry import Point, Rect


class Stage(str, Enum):
    INIT = "init"
    BSP = "bsp"
    ROOMS = "rooms"
    GRAPH = "graph"
    CORRIDOR_PLAN = "corridor-plan"
    CORRIDOR_CARVE = "corridor-carve"
    POST = "post"
    DONE = "done"


STAGE_ORDER = tuple(Stage)

VERTICAL = "V"
HORIZONTAL = "H"


def finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class PartitionSplit:
    orientation: str  # 'V' splits along x, 'H' along y
    line: int
    left: str
    right: str

    def to_dict(self):
        return {"orientation": self.orientation, "line": self.line, "left": self.left, "right": self.right}


@dataclass
class PartitionNode:
    id: str
    rect: Rect
    depth: int
    parent: Optional[str] = None
    split: Optional[PartitionSplit] = None
    is_leaf: bool = True

    def to_dict(self):
        data = {"id": self.id, "rect": self.rect.to_dict(), "depth": self.depth, "isLeaf": self.is_leaf}
        if self.parent is not None:
            data["parent"] = self.parent
        if self.split is not None:
            data["split"] = self.split.to_dict()
        return data


@dataclass(frozen=True)
class SplitCandidate:
    orientation: str
    line: int
    a: Rect
    b: Rect
    score: float
    breakdown: Dict[str, float]

    def to_dict(self):
        return {
            "orientation": self.orientation,
            "line": self.line,
            "a": self.a.to_dict(),
            "b": self.b.to_dict(),
            "score": self.score,
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class RoomCandidate:
    rect: Rect
    score: float
    breakdown: Dict[str, float]

    def to_dict(self):
        return {"rect": self.rect.to_dict(), "score": self.score, "breakdown": dict(self.breakdown)}


@dataclass(frozen=True)
class Room:
    id: str
    rect: Rect
    center: Point
    leaf_id: str

    @property
    def area(self) -> int:
        return self.rect.area

    def to_dict(self):
        return {"id": self.id, "rect": self.rect.to_dict(), "center": self.center.to_dict(), "leafId": self.leaf_id}


@dataclass(frozen=True)
class GraphEdge:
    a: str
    b: str
    weight: float

    @property
    def key(self):
        return (self.a, self.b)

    def to_dict(self):
        return {"a": self.a, "b": self.b, "weight": self.weight}


@dataclass(frozen=True)
class CorridorStats:
    visited: int
    path_len: int
    cost: float

    def to_dict(self):
        return {"visited": self.visited, "pathLen": self.path_len, "cost": finite_or_none(self.cost)}


@dataclass
class CorridorPlan:
    from_room: str
    to_room: str
    start: Point
    goal: Point
    path: List[Point]
    stats: CorridorStats

    def to_dict(self):
        return {
            "fromRoom": self.from_room,
            "toRoom": self.to_room,
            "start": self.start.to_dict(),
            "goal": self.goal.to_dict(),
            "path": [p.to_dict() for p in self.path],
            "stats": self.stats.to_dict(),
        }


@dataclass
class DungeonState:
    """Canonical generator state. Returned by reference: treat as read-only."""

    stage: Stage
    tiles: bytearray
    width: int
    height: int
    partitions: Dict[str, PartitionNode] = field(default_factory=dict)
    leaf_queue: List[str] = field(default_factory=list)
    rooms: List[Room] = field(default_factory=list)
    graph_candidate_edges: List[GraphEdge] = field(default_factory=list)
    graph_accepted_edges: List[GraphEdge] = field(default_factory=list)
    corridor_plans: List[CorridorPlan] = field(default_factory=list)

    def tile_at(self, x: int, y: int) -> int:
        return self.tiles[y * self.width + x]

    def leaves(self) -> List[PartitionNode]:
        return [p for p in self.partitions.values() if p.is_leaf]

    def to_dict(self, tiles=None):
        """Wire form; ``tiles`` lets the caller substitute an encoded grid."""
        return {
            "stage": self.stage.value,
            "width": self.width,
            "height": self.height,
            "tiles": list(self.tiles) if tiles is None else tiles,
            "partitions": [p.to_dict() for p in self.partitions.values()],
            "rooms": [r.to_dict() for r in self.rooms],
            "graphCandidateEdges": [e.to_dict() for e in self.graph_candidate_edges],
            "graphAcceptedEdges": [e.to_dict() for e in self.graph_accepted_edges],
            "corridorPlans": [c.to_dict() for c in self.corridor_plans],
        }


__all__ = [
    "Stage",
    "STAGE_ORDER",
    "VERTICAL",
    "HORIZONTAL",
    "PartitionSplit",
    "PartitionNode",
    "SplitCandidate",
    "RoomCandidate",
    "Room",
    "GraphEdge",
    "CorridorStats",
    "CorridorPlan",
    "DungeonState",
    "finite_or_none",
]
