# Tile values centralized for modular imports
from enum import IntEnum


class Tile(IntEnum):
    """Per-cell classification. Values are the exported byte values."""

    WALL = 0
    ROOM = 1
    CORRIDOR = 2
    DOOR = 3


WALL = Tile.WALL
ROOM = Tile.ROOM
CORRIDOR = Tile.CORRIDOR
DOOR = Tile.DOOR

WALKABLE = frozenset({ROOM, CORRIDOR, DOOR})

TILE_LEGEND = {"wall": int(WALL), "room": int(ROOM), "corridor": int(CORRIDOR), "door": int(DOOR)}

__all__ = ["Tile", "WALL", "ROOM", "CORRIDOR", "DOOR", "WALKABLE", "TILE_LEGEND"]
