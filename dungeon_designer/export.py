"""
project: Dungeon Designer
module: export.py
License: MIT

Level export: JSON bundle and CSV tile grid.

The JSON bundle is the hand-off format for game engines: tiles RLE encoded,
rooms with their graph neighbours, one connection per carved corridor, and a
validation block recomputed from the final grid so consumers can sanity check
what they load.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict

from .dungeon.connectivity import neighbor_map, rooms_connected
from .dungeon.generator import DungeonGenerator
from .dungeon.models import DungeonState
from .dungeon.tiles import CORRIDOR, DOOR, TILE_LEGEND
from .utils.tile_compress import decode_tiles_rle, encode_tiles_rle

_UNSAFE = re.compile(r"[^a-z0-9\-_]+", re.IGNORECASE)


def safe_seed_name(seed: str) -> str:
    """File-name-safe, lower-cased seed; ``'dungeon'`` when nothing usable remains."""
    return _UNSAFE.sub("-", seed).lower() or "dungeon"


def json_filename(seed: str) -> str:
    return f"{safe_seed_name(seed)}-level.json"


def csv_filename(seed: str) -> str:
    return f"{safe_seed_name(seed)}-tiles.csv"


def build_export_bundle(generator: DungeonGenerator) -> Dict[str, Any]:
    """Snapshot the generator's current state as an export bundle.

    Works at any stage; a bundle taken before ``done`` simply has fewer rooms,
    connections and doors.
    """
    state = generator.get_state()
    tiles = state.tiles
    neighbors = neighbor_map(state.rooms, state.graph_accepted_edges)

    rooms = [
        {
            "id": room.id,
            "rect": room.rect.to_dict(),
            "center": room.center.to_dict(),
            "area": room.area,
            "neighbors": list(neighbors.get(room.id, [])),
        }
        for room in state.rooms
    ]
    connections = [
        {
            "id": f"c{index}",
            "fromRoomId": plan.from_room,
            "toRoomId": plan.to_room,
            "doors": [plan.start.to_dict(), plan.goal.to_dict()],
            "length": len(plan.path),
        }
        for index, plan in enumerate(state.corridor_plans, start=1)
    ]

    return {
        "seed": generator.seed,
        "config": generator.config.to_dict(),
        "size": {"width": state.width, "height": state.height},
        "tileSize": 1,
        "origin": {"x": 0, "y": 0},
        "tileLegend": dict(TILE_LEGEND),
        "tiles": {
            "width": state.width,
            "height": state.height,
            "encoding": "rle",
            "data": encode_tiles_rle(tiles),
        },
        "rooms": rooms,
        "connections": connections,
        "validation": {
            "roomCount": len(rooms),
            "corridorTiles": tiles.count(CORRIDOR),
            "doorCount": tiles.count(DOOR),
            "corridorLength": sum(len(plan.path) for plan in state.corridor_plans),
            "roomsConnected": rooms_connected(state.rooms, state.graph_accepted_edges),
        },
    }


def export_json(generator: DungeonGenerator, indent: int = 2) -> str:
    return json.dumps(build_export_bundle(generator), indent=indent)


def export_csv(state: DungeonState) -> str:
    """One line per grid row, tile values comma separated, no trailing newline."""
    width = state.width
    rows = []
    for y in range(state.height):
        row = state.tiles[y * width:(y + 1) * width]
        rows.append(",".join(str(v) for v in row))
    return "\n".join(rows)


def tiles_from_bundle(bundle: Dict[str, Any]) -> bytearray:
    """Decode the tile grid of an export bundle.

    Raises:
        ValueError: unknown encoding or a grid that does not match the stated size.
    """
    grid = bundle["tiles"]
    if grid.get("encoding") != "rle":
        raise ValueError(f"unsupported tile encoding {grid.get('encoding')!r}")
    return decode_tiles_rle(grid["data"], expected_length=grid["width"] * grid["height"])


__all__ = [
    "safe_seed_name",
    "json_filename",
    "csv_filename",
    "build_export_bundle",
    "export_json",
    "export_csv",
    "tiles_from_bundle",
    "encode_tiles_rle",
    "decode_tiles_rle",
]
