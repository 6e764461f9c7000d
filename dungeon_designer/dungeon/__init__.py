"""Public dungeon package interface.

Stepwise BSP dungeon generator plus the primitives it is built from.
"""

from .astar import PathResult, find_path  # noqa: F401
from .config import DungeonConfig  # noqa: F401
from .errors import (  # noqa: F401
    ConfigError,
    GenerationInvariantError,
    UnknownItemError,
    UnknownPartitionError,
    UnknownRoomError,
)
from .generator import DungeonGenerator  # noqa: F401
from .geometry import Point, Rect  # noqa: F401
from .heap import MinHeap  # noqa: F401
from .models import DungeonState, Stage  # noqa: F401
from .overlay import Overlay  # noqa: F401
from .pipeline import GenerationReport, run_to_completion  # noqa: F401
from .rng import SeededRNG  # noqa: F401
from .tiles import CORRIDOR, DOOR, ROOM, WALL, Tile  # noqa: F401
from .union_find import DisjointSet  # noqa: F401

__all__ = [
    "DungeonGenerator",
    "DungeonConfig",
    "DungeonState",
    "Stage",
    "Overlay",
    "GenerationReport",
    "run_to_completion",
    "SeededRNG",
    "MinHeap",
    "DisjointSet",
    "find_path",
    "PathResult",
    "Point",
    "Rect",
    "Tile",
    "WALL",
    "ROOM",
    "CORRIDOR",
    "DOOR",
    "ConfigError",
    "GenerationInvariantError",
    "UnknownItemError",
    "UnknownPartitionError",
    "UnknownRoomError",
]
